"""The channel domain model and its validation rules."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from zmux.avurl import parse


class ChannelValidationError(ValueError):
    """Raised when a channel's configuration breaks a domain rule."""


def _int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    return 0 if value is None else int(value)


def _bool(data: Mapping[str, Any], key: str) -> bool:
    return bool(data.get(key) or False)


@dataclass
class ZmuxChannelInput:
    """Where a channel's media comes from and how it is probed."""

    url: str | None = None
    avioflags: str | None = None
    probesize: int = 0
    analyzeduration: int = 0
    fflags: str | None = None
    max_delay: int = 0
    localaddr: str | None = None
    timeout: int = 0
    rtsp_transport: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ZmuxChannelInput:
        return cls(
            url=data.get("url"),
            avioflags=data.get("avioflags"),
            probesize=_int(data, "probesize"),
            analyzeduration=_int(data, "analyzeduration"),
            fflags=data.get("fflags"),
            max_delay=_int(data, "max_delay"),
            localaddr=data.get("localaddr"),
            timeout=_int(data, "timeout"),
            rtsp_transport=data.get("rtsp_transport"),
        )


@dataclass
class ZmuxChannelOutput:
    """Where a channel's media goes and which streams are mapped."""

    url: str | None = None
    localaddr: str | None = None
    pkt_size: int = 0
    map_video: bool = False
    map_audio: bool = False
    map_data: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ZmuxChannelOutput:
        return cls(
            url=data.get("url"),
            localaddr=data.get("localaddr"),
            pkt_size=_int(data, "pkt_size"),
            map_video=_bool(data, "map_video"),
            map_audio=_bool(data, "map_audio"),
            map_data=_bool(data, "map_data"),
        )


@dataclass
class ZmuxChannel:
    """A remux channel: one input relayed to one output."""

    id: int = 0
    name: str | None = None
    input: ZmuxChannelInput = field(default_factory=ZmuxChannelInput)
    output: ZmuxChannelOutput = field(default_factory=ZmuxChannelOutput)
    enabled: bool = False
    restart_sec: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ZmuxChannel:
        return cls(
            id=_int(data, "id"),
            name=data.get("name"),
            input=ZmuxChannelInput.from_dict(data.get("input") or {}),
            output=ZmuxChannelOutput.from_dict(data.get("output") or {}),
            enabled=_bool(data, "enabled"),
            restart_sec=_int(data, "restart_sec"),
        )

    def validate(self) -> None:
        """Raise ``ChannelValidationError`` if the channel breaks a domain rule."""
        if self.enabled and (self.input.url is None or self.name is None):
            raise ChannelValidationError("enabled=true requires non-null input.URL and name")
        if self.input.url is not None and self.name is None:
            raise ChannelValidationError("input.URL requires non-null name")
        if self.input.url is not None:
            try:
                validate_input_url(self.input.url)
            except ValueError as exc:
                raise ChannelValidationError(f"invalid input.URL: {exc}") from exc
        if self.output.url is not None:
            try:
                validate_output_url(self.output.url)
            except ValueError as exc:
                raise ChannelValidationError(f"invalid output.URL: {exc}") from exc


def validate_input_url(raw: str) -> None:
    """Require a parseable input URL with an explicit protocol."""
    url = parse(raw)
    if not url.schema:
        raise ChannelValidationError("missing protocol")


def validate_output_url(raw: str) -> None:
    """Require a parseable ``udp`` output URL with host and port."""
    url = parse(raw)
    if url.schema != "udp":
        raise ChannelValidationError("only `udp` protocol allowed for media output")
    if not url.host:
        raise ChannelValidationError("missing host for 'udp' media output")
    if not url.port:
        raise ChannelValidationError("missing port for 'udp' media output")
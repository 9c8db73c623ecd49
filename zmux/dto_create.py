"""Request body for creating a channel: every field optional, defaults filled in."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from zmux.channel import ZmuxChannel, ZmuxChannelInput, ZmuxChannelOutput
from zmux.fields import UINT, Field, RequestError, reject_unknown

_DEFAULT_PROBESIZE = 5000000
_DEFAULT_ANALYZEDURATION = 0
_DEFAULT_FFLAGS = "nobuffer"
_DEFAULT_MAX_DELAY = -1
_DEFAULT_TIMEOUT = 3000000
_DEFAULT_PKT_SIZE = 1316
_DEFAULT_RESTART_SEC = 3


def _nullable(f: Field[Any], default: Any = None) -> Any:
    """Value of a nullable field: None when null, ``default`` when omitted."""
    if not f.is_set:
        return default
    return None if f.is_null else f.value


def _non_null(f: Field[Any], name: str, default: Any) -> Any:
    """Value of a non-nullable field: ``default`` when omitted; explicit null is an error."""
    if not f.is_set:
        return default
    if f.is_null:
        raise RequestError(f"{name} cannot be null")
    return f.value


_INPUT_KINDS: dict[str, Any] = {
    "url": str,
    "avioflags": str,
    "probesize": UINT,
    "analyzeduration": UINT,
    "fflags": str,
    "max_delay": int,
    "localaddr": str,
    "timeout": UINT,
    "rtsp_transport": str,
}

_OUTPUT_KINDS: dict[str, Any] = {
    "url": str,
    "localaddr": str,
    "pkt_size": UINT,
    "map_video": bool,
    "map_audio": bool,
    "map_data": bool,
}


def _fields(data: Mapping[str, Any], kinds: Mapping[str, Any]) -> dict[str, Field[Any]]:
    data = reject_unknown(data, kinds)
    return {name: Field.from_mapping(data, name, kind) for name, kind in kinds.items()}


@dataclass(frozen=True)
class CreateChannelInput:
    """The ``input`` object of a create request."""

    url: Field[str] = field(default_factory=Field)
    avioflags: Field[str] = field(default_factory=Field)
    probesize: Field[int] = field(default_factory=Field)
    analyzeduration: Field[int] = field(default_factory=Field)
    fflags: Field[str] = field(default_factory=Field)
    max_delay: Field[int] = field(default_factory=Field)
    localaddr: Field[str] = field(default_factory=Field)
    timeout: Field[int] = field(default_factory=Field)
    rtsp_transport: Field[str] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> CreateChannelInput:
        if data is None:
            return cls()
        return cls(**_fields(data, _INPUT_KINDS))

    def to_channel_input(self) -> ZmuxChannelInput:
        """Build the channel input, filling omitted fields with defaults."""
        return ZmuxChannelInput(
            url=_nullable(self.url),
            avioflags=_nullable(self.avioflags),
            probesize=_non_null(self.probesize, "probesize", _DEFAULT_PROBESIZE),
            analyzeduration=_non_null(
                self.analyzeduration, "analyzeduration", _DEFAULT_ANALYZEDURATION
            ),
            fflags=_nullable(self.fflags, _DEFAULT_FFLAGS),
            max_delay=_non_null(self.max_delay, "max_delay", _DEFAULT_MAX_DELAY),
            localaddr=_nullable(self.localaddr),
            timeout=_non_null(self.timeout, "timeout", _DEFAULT_TIMEOUT),
            rtsp_transport=_nullable(self.rtsp_transport),
        )


@dataclass(frozen=True)
class CreateChannelOutput:
    """The ``output`` object of a create request."""

    url: Field[str] = field(default_factory=Field)
    localaddr: Field[str] = field(default_factory=Field)
    pkt_size: Field[int] = field(default_factory=Field)
    map_video: Field[bool] = field(default_factory=Field)
    map_audio: Field[bool] = field(default_factory=Field)
    map_data: Field[bool] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> CreateChannelOutput:
        if data is None:
            return cls()
        return cls(**_fields(data, _OUTPUT_KINDS))

    def to_channel_output(self) -> ZmuxChannelOutput:
        """Build the channel output, filling omitted fields with defaults."""
        return ZmuxChannelOutput(
            url=_nullable(self.url),
            localaddr=_nullable(self.localaddr),
            pkt_size=_non_null(self.pkt_size, "pkt_size", _DEFAULT_PKT_SIZE),
            map_video=_non_null(self.map_video, "map_video", True),
            map_audio=_non_null(self.map_audio, "map_audio", True),
            map_data=_non_null(self.map_data, "map_data", True),
        )


_CHANNEL_KINDS: dict[str, Any] = {
    "name": str,
    "input": CreateChannelInput,
    "output": CreateChannelOutput,
    "enabled": bool,
    "restart_sec": UINT,
}


@dataclass(frozen=True)
class CreateChannel:
    """Body of a channel creation request; all fields are optional."""

    name: Field[str] = field(default_factory=Field)
    input: Field[CreateChannelInput] = field(default_factory=Field)
    output: Field[CreateChannelOutput] = field(default_factory=Field)
    enabled: Field[bool] = field(default_factory=Field)
    restart_sec: Field[int] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> CreateChannel:
        if data is None:
            return cls()
        return cls(**_fields(data, _CHANNEL_KINDS))

    def to_channel(self) -> ZmuxChannel:
        """Build a new channel; raise ``RequestError`` on null for a non-nullable field."""
        name = _nullable(self.name)
        body_input = _non_null(self.input, "input", None) or CreateChannelInput()
        channel_input = body_input.to_channel_input()
        body_output = _non_null(self.output, "output", None) or CreateChannelOutput()
        channel_output = body_output.to_channel_output()
        enabled = _non_null(self.enabled, "enabled", False)
        restart_sec = _non_null(self.restart_sec, "restart_sec", _DEFAULT_RESTART_SEC)
        return ZmuxChannel(
            name=name,
            input=channel_input,
            output=channel_output,
            enabled=enabled,
            restart_sec=restart_sec,
        )
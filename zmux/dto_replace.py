"""Request body for replacing a channel: every field required (full replacement)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from zmux.channel import ZmuxChannel, ZmuxChannelInput, ZmuxChannelOutput
from zmux.fields import UINT, Field, RequestError, reject_unknown


def _required(f: Field[Any], name: str, *, nullable: bool) -> Any:
    """Value of a required field; raise if omitted, or if null where null is forbidden."""
    if not f.is_set:
        raise RequestError(f"{name} is required")
    if f.is_null:
        if nullable:
            return None
        raise RequestError(f"{name} cannot be null")
    return f.value


def _fields(data: Mapping[str, Any], kinds: Mapping[str, Any]) -> dict[str, Field[Any]]:
    data = reject_unknown(data, kinds)
    return {name: Field.from_mapping(data, name, kind) for name, kind in kinds.items()}


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


@dataclass(frozen=True)
class ReplaceInput:
    """The ``input`` object of a replace request."""

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
    def from_json(cls, data: Any) -> ReplaceInput:
        if data is None:
            return cls()
        return cls(**_fields(data, _INPUT_KINDS))

    def to_channel_input(self) -> ZmuxChannelInput:
        """Build the channel input; every field must be present."""
        return ZmuxChannelInput(
            url=_required(self.url, "input.url", nullable=True),
            avioflags=_required(self.avioflags, "input.avioflags", nullable=True),
            probesize=_required(self.probesize, "input.probesize", nullable=False),
            analyzeduration=_required(
                self.analyzeduration, "input.analyzeduration", nullable=False
            ),
            fflags=_required(self.fflags, "input.fflags", nullable=True),
            max_delay=_required(self.max_delay, "input.max_delay", nullable=False),
            localaddr=_required(self.localaddr, "input.localaddr", nullable=True),
            timeout=_required(self.timeout, "input.timeout", nullable=False),
            rtsp_transport=_required(self.rtsp_transport, "input.rtsp_transport", nullable=True),
        )


@dataclass(frozen=True)
class ReplaceOutput:
    """The ``output`` object of a replace request."""

    url: Field[str] = field(default_factory=Field)
    localaddr: Field[str] = field(default_factory=Field)
    pkt_size: Field[int] = field(default_factory=Field)
    map_video: Field[bool] = field(default_factory=Field)
    map_audio: Field[bool] = field(default_factory=Field)
    map_data: Field[bool] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> ReplaceOutput:
        if data is None:
            return cls()
        return cls(**_fields(data, _OUTPUT_KINDS))

    def to_channel_output(self) -> ZmuxChannelOutput:
        """Build the channel output; every field must be present."""
        return ZmuxChannelOutput(
            url=_required(self.url, "output.url", nullable=True),
            localaddr=_required(self.localaddr, "output.localaddr", nullable=True),
            pkt_size=_required(self.pkt_size, "output.pkt_size", nullable=False),
            map_video=_required(self.map_video, "output.map_video", nullable=False),
            map_audio=_required(self.map_audio, "output.map_audio", nullable=False),
            map_data=_required(self.map_data, "output.map_data", nullable=False),
        )


_CHANNEL_KINDS: dict[str, Any] = {
    "name": str,
    "input": ReplaceInput,
    "output": ReplaceOutput,
    "enabled": bool,
    "restart_sec": UINT,
}


@dataclass(frozen=True)
class ReplaceChannel:
    """Body of a channel replacement request; all fields are required."""

    name: Field[str] = field(default_factory=Field)
    input: Field[ReplaceInput] = field(default_factory=Field)
    output: Field[ReplaceOutput] = field(default_factory=Field)
    enabled: Field[bool] = field(default_factory=Field)
    restart_sec: Field[int] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> ReplaceChannel:
        if data is None:
            return cls()
        return cls(**_fields(data, _CHANNEL_KINDS))

    def to_channel(self, channel_id: int) -> ZmuxChannel:
        """Build the replacement channel with ``channel_id``; raise ``RequestError`` if incomplete."""
        name = _required(self.name, "name", nullable=True)
        channel_input = _required(self.input, "input", nullable=False).to_channel_input()
        channel_output = _required(self.output, "output", nullable=False).to_channel_output()
        enabled = _required(self.enabled, "enabled", nullable=False)
        restart_sec = _required(self.restart_sec, "restart_sec", nullable=False)
        return ZmuxChannel(
            id=channel_id,
            name=name,
            input=channel_input,
            output=channel_output,
            enabled=enabled,
            restart_sec=restart_sec,
        )
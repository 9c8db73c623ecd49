"""Request body for partially updating a channel (merge-patch semantics)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from zmux.channel import ZmuxChannel, ZmuxChannelInput, ZmuxChannelOutput
from zmux.fields import UINT, Field, RequestError, reject_unknown


def _patch_nullable(target: Any, attr: str, f: Field[Any]) -> None:
    if f.is_set:
        setattr(target, attr, None if f.is_null else f.value)


def _patch_value(target: Any, attr: str, f: Field[Any]) -> None:
    if f.is_set:
        if f.is_null:
            raise RequestError(f"{attr} cannot be null")
        setattr(target, attr, f.value)


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
class ModifyChannelInput:
    """The ``input`` object of a patch request."""

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
    def from_json(cls, data: Any) -> ModifyChannelInput:
        if data is None:
            return cls()
        return cls(**_fields(data, _INPUT_KINDS))

    def merge_patch(self, prev: ZmuxChannelInput) -> None:
        """Apply the set fields to ``prev`` in place; omitted fields stay unchanged."""
        _patch_nullable(prev, "url", self.url)
        _patch_nullable(prev, "avioflags", self.avioflags)
        _patch_value(prev, "probesize", self.probesize)
        _patch_value(prev, "analyzeduration", self.analyzeduration)
        _patch_nullable(prev, "fflags", self.fflags)
        _patch_value(prev, "max_delay", self.max_delay)
        _patch_nullable(prev, "localaddr", self.localaddr)
        _patch_value(prev, "timeout", self.timeout)
        _patch_nullable(prev, "rtsp_transport", self.rtsp_transport)


@dataclass(frozen=True)
class ModifyChannelOutput:
    """The ``output`` object of a patch request."""

    url: Field[str] = field(default_factory=Field)
    localaddr: Field[str] = field(default_factory=Field)
    pkt_size: Field[int] = field(default_factory=Field)
    map_video: Field[bool] = field(default_factory=Field)
    map_audio: Field[bool] = field(default_factory=Field)
    map_data: Field[bool] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> ModifyChannelOutput:
        if data is None:
            return cls()
        return cls(**_fields(data, _OUTPUT_KINDS))

    def merge_patch(self, prev: ZmuxChannelOutput) -> None:
        """Apply the set fields to ``prev`` in place; omitted fields stay unchanged."""
        _patch_nullable(prev, "url", self.url)
        _patch_nullable(prev, "localaddr", self.localaddr)
        _patch_value(prev, "pkt_size", self.pkt_size)
        _patch_value(prev, "map_video", self.map_video)
        _patch_value(prev, "map_audio", self.map_audio)
        _patch_value(prev, "map_data", self.map_data)


_CHANNEL_KINDS: dict[str, Any] = {
    "name": str,
    "input": ModifyChannelInput,
    "output": ModifyChannelOutput,
    "enabled": bool,
    "restart_sec": UINT,
}


@dataclass(frozen=True)
class ModifyChannel:
    """Body of a channel patch request; all fields are optional."""

    name: Field[str] = field(default_factory=Field)
    input: Field[ModifyChannelInput] = field(default_factory=Field)
    output: Field[ModifyChannelOutput] = field(default_factory=Field)
    enabled: Field[bool] = field(default_factory=Field)
    restart_sec: Field[int] = field(default_factory=Field)

    @classmethod
    def from_json(cls, data: Any) -> ModifyChannel:
        if data is None:
            return cls()
        return cls(**_fields(data, _CHANNEL_KINDS))

    def merge_patch(self, prev: ZmuxChannel) -> None:
        """Apply the patch to ``prev`` in place; raise ``RequestError`` on a forbidden null."""
        _patch_nullable(prev, "name", self.name)
        if self.input.is_set:
            if self.input.is_null:
                raise RequestError("input cannot be null")
            self.input.value.merge_patch(prev.input)
        if self.output.is_set:
            if self.output.is_null:
                raise RequestError("output cannot be null")
            self.output.value.merge_patch(prev.output)
        _patch_value(prev, "enabled", self.enabled)
        _patch_value(prev, "restart_sec", self.restart_sec)
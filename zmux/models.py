"""Monitoring models served by the channel summary endpoint."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Mapping

from zmux.channel import ZmuxChannel

_INT64_MIN, _INT64_MAX = -(1 << 63), (1 << 63) - 1


def _optional_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


@dataclass
class RemuxStatus:
    """The status document a remux process publishes for its channel."""

    liveness: str = ""
    metadata: str = ""
    timestamp: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RemuxStatus:
        if not isinstance(data, Mapping):
            raise ValueError("status must be an object")
        timestamp = data.get("timestamp")
        if timestamp is None:
            timestamp = 0
        elif isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError("timestamp must be an integer")
        elif not _INT64_MIN <= timestamp <= _INT64_MAX:
            raise ValueError("timestamp out of range")
        return cls(
            liveness=_optional_str(data, "liveness"),
            metadata=_optional_str(data, "metadata"),
            timestamp=timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ChannelSummary:
    """A channel plus whatever live monitoring data is available for it.

    ``ifmt`` and ``metrics`` hold raw JSON text as stored by the remux process.
    """

    channel: ZmuxChannel
    status: RemuxStatus | None = None
    ifmt: str | bytes | None = None
    metrics: str | bytes | None = None

    def to_dict(self) -> dict[str, Any]:
        out = self.channel.to_dict()
        if self.status is not None:
            out["status"] = self.status.to_dict()
        for key, raw in (("ifmt", self.ifmt), ("metrics", self.metrics)):
            if raw:
                out[key] = json.loads(raw)
        return out
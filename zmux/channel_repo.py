"""Persistence of channel documents in Redis."""

from __future__ import annotations

import json
from typing import Any

from zmux.channel import ZmuxChannel
from zmux.redis_client import new_client

CHANNEL_KEY_PREFIX = "zmux:channel:"
NEXT_ID_KEY = "zmux:channel:next_id"
CHANNEL_ID_SET_KEY = "zmux:channels"

_DEFAULT_ADDR = "localhost:6379"


class ChannelNotFoundError(LookupError):
    """Raised when no channel is stored under the requested ID."""

    def __init__(self, message: str = "channel not found") -> None:
        super().__init__(message)


def key_for(channel_id: int) -> str:
    """Return the Redis key holding the channel document for ``channel_id``."""
    return f"{CHANNEL_KEY_PREFIX}{channel_id}"


def _text(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


def _id_order(raw: str) -> tuple[int, int, str]:
    return (0, int(raw), raw) if raw.isdecimal() else (1, 0, raw)


class ChannelRepository:
    """Stores channels as JSON documents plus a set of known channel IDs."""

    def __init__(self, client: Any = None) -> None:
        self._client = client if client is not None else new_client(_DEFAULT_ADDR, 0)

    def generate_id(self) -> int:
        """Return a new unique channel ID."""
        return int(self._client.incr(NEXT_ID_KEY))

    def exists(self, channel_id: int) -> bool:
        """Return True if ``channel_id`` is in the set of known channels."""
        return bool(self._client.sismember(CHANNEL_ID_SET_KEY, str(channel_id)))

    def set(self, channel: ZmuxChannel) -> None:
        """Store ``channel`` and register its ID, atomically."""
        payload = json.dumps(channel.to_dict())
        pipe = self._client.pipeline(transaction=True)
        pipe.set(key_for(channel.id), payload)
        pipe.sadd(CHANNEL_ID_SET_KEY, str(channel.id))
        pipe.execute()

    def get(self, channel_id: int) -> ZmuxChannel:
        """Load a channel; raise ``ChannelNotFoundError`` if it is not stored."""
        value = self._client.get(key_for(channel_id))
        if value is None:
            raise ChannelNotFoundError()
        try:
            data = json.loads(value)
        except ValueError as exc:
            raise ValueError(f"unmarshal: {exc}") from exc
        return ZmuxChannel.from_dict(data)

    def delete(self, channel_id: int) -> None:
        """Remove a channel; raise ``ChannelNotFoundError`` if it was not stored."""
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(key_for(channel_id))
        pipe.srem(CHANNEL_ID_SET_KEY, str(channel_id))
        deleted, _ = pipe.execute()
        if not deleted:
            raise ChannelNotFoundError()

    def list(self) -> list[ZmuxChannel]:
        """Load every channel registered in the ID set; missing documents are skipped."""
        members = self._client.smembers(CHANNEL_ID_SET_KEY) or set()
        ids = sorted((_text(m) for m in members if _text(m).strip()), key=_id_order)
        if not ids:
            return []
        keys = [f"{CHANNEL_KEY_PREFIX}{raw}" for raw in ids]
        values = self._client.mget(keys)
        channels = []
        for index, (key, value) in enumerate(zip(keys, values)):
            if value is None:
                continue
            if not isinstance(value, (str, bytes)):
                raise TypeError(f"unexpected type for key {key} at index {index}")
            try:
                data = json.loads(value)
            except ValueError as exc:
                raise ValueError(f"unmarshal key {key}: {exc}") from exc
            channels.append(ZmuxChannel.from_dict(data))
        return channels
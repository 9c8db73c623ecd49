"""Read access to the monitoring keys a remux process publishes."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from zmux.models import RemuxStatus
from zmux.redis_client import new_client

_log = logging.getLogger("zmux.remux_repo")

_DEFAULT_ADDR = "localhost:6379"


def _status_key(channel_id: int) -> str:
    return f"remux:{channel_id}:status"


def _ifmt_key(channel_id: int) -> str:
    return f"remux:{channel_id}:ifmt"


def _metrics_key(channel_id: int) -> str:
    return f"remux:{channel_id}:metrics"


@dataclass(frozen=True)
class LiveExtra:
    """Raw ifmt and metrics JSON for a live channel; either may be absent."""

    ifmt: str | bytes | None = None
    metrics: str | bytes | None = None


def _as_raw_json(key: str, value: Any) -> str | bytes | None:
    if isinstance(value, (str, bytes)):
        return value
    _log.warning("unexpected redis type for json blob: key=%s type=%s", key, type(value).__name__)
    return None


class RemuxRepository:
    """Bulk reads of ``remux:<id>:*`` monitoring keys."""

    def __init__(self, client: Any = None) -> None:
        self._client = client if client is not None else new_client(_DEFAULT_ADDR, 0)

    def bulk_status(self, ids: Iterable[int]) -> dict[int, RemuxStatus]:
        """Fetch the status of each channel in one round trip; missing or bad entries are skipped."""
        ids = list(ids)
        if not ids:
            return {}
        keys = [_status_key(channel_id) for channel_id in ids]
        values = self._client.mget(keys)
        out: dict[int, RemuxStatus] = {}
        for channel_id, key, value in zip(ids, keys, values):
            if value is None:
                continue
            if not isinstance(value, (str, bytes)):
                _log.warning("unexpected redis type for status: %s", type(value).__name__)
                continue
            try:
                data = json.loads(value)
                status = RemuxStatus() if data is None else RemuxStatus.from_dict(data)
            except ValueError as exc:
                _log.warning("bad status json: key=%s error=%s", key, exc)
                continue
            out[channel_id] = status
        return out

    def bulk_ifmt_metrics(self, ids: Iterable[int]) -> dict[int, LiveExtra]:
        """Fetch ifmt and metrics blobs for each channel in one round trip."""
        ids = list(ids)
        if not ids:
            return {}
        keys = [key for channel_id in ids for key in (_ifmt_key(channel_id), _metrics_key(channel_id))]
        values = self._client.mget(keys)
        out: dict[int, LiveExtra] = {}
        for index, channel_id in enumerate(ids):
            ifmt_key, metrics_key = keys[2 * index], keys[2 * index + 1]
            ifmt_value, metrics_value = values[2 * index], values[2 * index + 1]
            ifmt = None if ifmt_value is None else _as_raw_json(ifmt_key, ifmt_value)
            metrics = None if metrics_value is None else _as_raw_json(metrics_key, metrics_value)
            if ifmt is not None or metrics is not None:
                out[channel_id] = LiveExtra(ifmt=ifmt, metrics=metrics)
        return out
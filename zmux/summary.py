"""Cached dashboard summary of all channels with their live monitoring data."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from zmux.channel_repo import ChannelRepository
from zmux.models import ChannelSummary, RemuxStatus
from zmux.remux_repo import LiveExtra, RemuxRepository

_log = logging.getLogger("zmux.summary")

_DEFAULT_TTL = 0.25
_DEFAULT_REFRESH_TIMEOUT = 0.3


@dataclass
class SummaryOptions:
    """Cache policy: snapshot lifetime, refresh time budget and stale fallback (seconds)."""

    ttl: float = _DEFAULT_TTL
    refresh_timeout: float = _DEFAULT_REFRESH_TIMEOUT
    allow_stale_on_error: bool = False

    def __post_init__(self) -> None:
        if self.ttl <= 0:
            self.ttl = _DEFAULT_TTL
        if self.refresh_timeout <= 0:
            self.refresh_timeout = _DEFAULT_REFRESH_TIMEOUT


@dataclass
class SummaryResult:
    """A summary snapshot, whether it came from cache, and when it was generated."""

    data: list[ChannelSummary] = field(default_factory=list)
    cache_hit: bool = False
    generated_at: float = 0.0


class SummaryService:
    """Builds channel summaries from Redis and serves them from a short-lived cache.

    Concurrent refreshes are coalesced: only one runs at a time, and callers
    waiting behind it are served the snapshot it produced.
    """

    def __init__(
        self,
        channel_repo: Any = None,
        remux_repo: Any = None,
        options: SummaryOptions | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._channel_repo = channel_repo if channel_repo is not None else ChannelRepository()
        self._remux_repo = remux_repo if remux_repo is not None else RemuxRepository()
        self.options = options or SummaryOptions()
        self._clock = clock
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._cache: list[ChannelSummary] | None = None
        self._expires = 0.0
        self._generated_at = 0.0

    def get(self) -> SummaryResult:
        """Return the cached snapshot, refreshing it first if it has expired."""
        hit = self._fresh()
        if hit is not None:
            return hit
        with self._refresh_lock:
            hit = self._fresh()
            if hit is not None:
                return hit
            start = self._clock()
            try:
                data = self._refresh_bounded()
            except Exception as exc:
                if self.options.allow_stale_on_error:
                    with self._lock:
                        if self._cache is not None:
                            _log.warning("summary refresh failed; serving stale: %s", exc)
                            return SummaryResult(list(self._cache), True, self._generated_at)
                raise
            with self._lock:
                self._cache = data
                self._expires = self._clock() + self.options.ttl
                self._generated_at = start
            return SummaryResult(list(data), False, start)

    def invalidate(self) -> None:
        """Drop the snapshot so the next call refreshes."""
        with self._lock:
            self._cache = None
            self._expires = 0.0
            self._generated_at = 0.0

    def _fresh(self) -> SummaryResult | None:
        with self._lock:
            if self._cache is not None and self._clock() < self._expires:
                return SummaryResult(list(self._cache), True, self._generated_at)
        return None

    def _refresh_bounded(self) -> list[ChannelSummary]:
        outcome: dict[str, Any] = {}

        def work() -> None:
            try:
                outcome["value"] = self._refresh()
            except BaseException as exc:  # handed back to the caller below
                outcome["error"] = exc

        worker = threading.Thread(target=work, name="summary-refresh", daemon=True)
        worker.start()
        worker.join(self.options.refresh_timeout)
        if worker.is_alive():
            raise TimeoutError("summary refresh timed out")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["value"]

    def _refresh(self) -> list[ChannelSummary]:
        channels = self._channel_repo.list()
        enabled_ids = [ch.id for ch in channels if ch.enabled]

        statuses: dict[int, RemuxStatus]
        try:
            statuses = self._remux_repo.bulk_status(enabled_ids)
        except Exception as exc:
            _log.warning("bulk status failed: %s", exc)
            statuses = {}

        live_ids = [
            channel_id
            for channel_id in enabled_ids
            if channel_id in statuses and statuses[channel_id].liveness.casefold() == "live"
        ]

        extras: dict[int, LiveExtra]
        try:
            extras = self._remux_repo.bulk_ifmt_metrics(live_ids)
        except Exception as exc:
            _log.warning("bulk ifmt/metrics failed: %s", exc)
            extras = {}

        summaries = []
        for ch in channels:
            summary = ChannelSummary(channel=ch)
            if ch.enabled and ch.id in statuses:
                summary.status = statuses[ch.id]
                extra = extras.get(ch.id)
                if extra is not None:
                    summary.ifmt = extra.ifmt
                    summary.metrics = extra.metrics
            summaries.append(summary)
        return summaries
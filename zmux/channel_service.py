"""Channel lifecycle: keeps systemd units and stored channel documents in step.

Side effects on the runtime (systemd) are carried out first, and the channel
document is persisted only once they have succeeded. When persisting fails
after a runtime change, the change is rolled back on a best-effort basis where
that is safe. Mutations of the same channel ID are serialized; reads take no
lock.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from zmux.channel import ZmuxChannel
from zmux.remux_command import build_remux_exec_start
from zmux.systemd import SystemdError, SystemdServiceConfig

_log = logging.getLogger("zmux.channel_service")


def _service_name(channel_id: int) -> str:
    return f"zmux-channel-{channel_id}"


class ChannelService:
    """Creates, updates, deletes, enables and disables channels."""

    def __init__(self, repo: Any = None, systemd: Any = None) -> None:
        if systemd is None:
            from zmux.systemd import SystemdService

            systemd = SystemdService()
        if repo is None:
            from zmux.channel_repo import ChannelRepository

            repo = ChannelRepository()
        self._repo = repo
        self._systemd = systemd
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _locked(self, channel_id: int) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(channel_id, threading.Lock())
        with lock:
            yield

    def _forget_lock(self, channel_id: int) -> None:
        with self._locks_guard:
            self._locks.pop(channel_id, None)

    def channel_exists(self, channel_id: int) -> bool:
        """Return True if a channel with ``channel_id`` is stored."""
        return self._repo.exists(channel_id)

    def create_channel(self, channel: ZmuxChannel) -> ZmuxChannel:
        """Assign a new ID to ``channel``, start it if enabled, then persist it."""
        channel_id = self._repo.generate_id()
        with self._locked(channel_id):
            channel.id = channel_id
            if channel.enabled:
                self._commit(channel)
                self._enable(channel.id)
            try:
                self._repo.set(channel)
            except Exception:
                if channel.enabled:
                    self._try(self._disable, channel.id)
                raise
        return channel

    def get_channel(self, channel_id: int) -> ZmuxChannel:
        """Return a stored channel; raise ``ChannelNotFoundError`` if absent."""
        return self._repo.get(channel_id)

    def list_channels(self) -> list[ZmuxChannel]:
        """Return every stored channel."""
        return self._repo.list()

    def update_channel(self, channel: ZmuxChannel) -> None:
        """Bring the runtime in line with ``channel`` and persist it."""
        with self._locked(channel.id):
            previous = self._repo.get(channel.id)
            if channel.enabled:
                self._commit(channel)
                if previous.enabled:
                    self._restart(channel.id)
                else:
                    self._enable(channel.id)
            elif previous.enabled:
                self._disable(channel.id)
            # No runtime rollback on failure: the new unit may already be live.
            self._repo.set(channel)

    def delete_channel(self, channel_id: int) -> None:
        """Stop the channel if it runs and remove its record."""
        with self._locked(channel_id):
            channel = self._repo.get(channel_id)
            was_enabled = channel.enabled
            if was_enabled:
                self._disable(channel.id)
            try:
                self._repo.delete(channel_id)
            except Exception:
                if was_enabled:
                    self._try(self._enable, channel.id)
                raise
        self._forget_lock(channel_id)

    def enable_channel(self, channel_id: int) -> None:
        """Start the channel and persist ``enabled=True``; no-op if already enabled."""
        with self._locked(channel_id):
            channel = self._repo.get(channel_id)
            if channel.enabled:
                return
            self._enable(channel.id)
            channel.enabled = True
            try:
                self._repo.set(channel)
            except Exception:
                self._try(self._disable, channel.id)
                raise

    def disable_channel(self, channel_id: int) -> None:
        """Stop the channel and persist ``enabled=False``; no-op if already disabled."""
        with self._locked(channel_id):
            channel = self._repo.get(channel_id)
            if not channel.enabled:
                return
            self._disable(channel.id)
            channel.enabled = False
            try:
                self._repo.set(channel)
            except Exception:
                self._try(self._enable, channel.id)
                raise

    @staticmethod
    def _try(action: Any, channel_id: int) -> None:
        try:
            action(channel_id)
        except SystemdError as exc:
            _log.warning("rollback for channel %s failed: %s", channel_id, exc)

    def _restart(self, channel_id: int) -> None:
        try:
            self._systemd.restart_service(_service_name(channel_id))
        except SystemdError as exc:
            raise SystemdError(f"re-enable channel: {exc}") from exc

    def _enable(self, channel_id: int) -> None:
        try:
            self._systemd.enable_service(_service_name(channel_id))
        except SystemdError as exc:
            raise SystemdError(f"enable channel: {exc}") from exc

    def _disable(self, channel_id: int) -> None:
        try:
            self._systemd.disable_service(_service_name(channel_id))
        except SystemdError as exc:
            raise SystemdError(f"disable channel: {exc}") from exc

    def _commit(self, channel: ZmuxChannel) -> None:
        cfg = SystemdServiceConfig(
            service_name=_service_name(channel.id),
            exec_start=build_remux_exec_start(channel),
            restart_sec=str(channel.restart_sec),
        )
        try:
            self._systemd.commit_service(cfg)
        except SystemdError as exc:
            raise SystemdError(f"commit systemd service: {exc}") from exc
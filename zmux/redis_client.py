"""Construction and health-check of the Redis client used by the repositories."""

from __future__ import annotations

import logging
import time
from typing import Any

import redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

_log = logging.getLogger("zmux.redis")

_DIAL_TIMEOUT = 5.0
_IO_TIMEOUT = 3.0
_POOL_SIZE = 10
_MAX_RETRIES = 3


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, 6379
    return host.strip("[]") or "localhost", int(port)


def new_client(addr: str, db: int) -> redis.Redis:
    """Create a Redis client for ``addr`` ("host:port") and database ``db``, then ping it."""
    host, port = _split_addr(addr)
    client = redis.Redis(
        host=host,
        port=port,
        db=db,
        socket_connect_timeout=_DIAL_TIMEOUT,
        socket_timeout=_IO_TIMEOUT,
        max_connections=_POOL_SIZE,
        retry=Retry(ExponentialBackoff(), _MAX_RETRIES),
        retry_on_timeout=True,
    )
    ping(client)
    return client


def ping(client: Any) -> bool:
    """Ping the server and log the outcome with its round-trip time; return success."""
    kwargs = client.connection_pool.connection_kwargs
    context = {
        "addr": f"{kwargs.get('host', '')}:{kwargs.get('port', '')}",
        "db": kwargs.get("db", 0),
    }
    start = time.monotonic()
    try:
        client.ping()
    except redis.RedisError as exc:
        elapsed = time.monotonic() - start
        _log.warning("connection failed: %s (ping_rtt=%.3fs) %s", exc, elapsed, context)
        return False
    elapsed = time.monotonic() - start
    _log.info("connection established (ping_rtt=%.3fs) %s", elapsed, context)
    return True
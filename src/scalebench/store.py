"""Backing-store probes for baselines and memory sampling.

Wraps an injected ``redis.Redis`` client (Redis and Valkey speak the
same protocol).  The client is passed in rather than created at module
level so the runner can be exercised without a live store.
"""

from __future__ import annotations

import redis

from scalebench.logging import get_logger

log = get_logger("store")


class StoreProbe:
    """Read-only probes against the store backing the API under test."""

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def connect(cls, host: str, port: int, *, timeout: float = 5.0) -> StoreProbe:
        """Build a probe for the store at *host*:*port*.

        The connection is lazy; nothing is sent until the first probe.
        """
        return cls(
            redis.Redis(
                host=host,
                port=port,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
        )

    def ping(self) -> None:
        """One PING round trip.  Raises ``redis.RedisError`` on failure."""
        self.client.ping()

    def used_memory_mb(self) -> float:
        """Current ``used_memory`` in megabytes, or 0.0 if unavailable."""
        try:
            info = self.client.info("memory")
        except redis.RedisError as exc:
            log.debug("Could not read store memory: %s", exc)
            return 0.0
        used = info.get("used_memory")
        if used is None:
            return 0.0
        return int(used) / 1024 / 1024

    def server_info(self) -> str:
        """``"valkey_version: X"``, ``"redis_version: X"`` or ``"unknown"``."""
        try:
            info = self.client.info("server")
        except redis.RedisError as exc:
            log.warning("Could not get store version: %s", exc)
            return "unknown"
        for key in ("valkey_version", "redis_version"):
            if info.get(key):
                return f"{key}: {info[key]}"
        return "unknown"

    def close(self) -> None:
        self.client.close()

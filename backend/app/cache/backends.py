"""Key-value backends satisfying the minimal get/set/delete/keys contract."""

from __future__ import annotations

import fnmatch
import time
from contextlib import contextmanager
from threading import Lock
from typing import Callable, Iterator, Protocol

import redis
from loguru import logger

from app.core.errors import (
    CacheBackendError,
    CacheReadDisallowed,
    CacheUnavailable,
    CacheWriteFailed,
)


class CacheBackend(Protocol):
    """Interface implemented by distributed cache adapters."""

    name: str

    def get(self, key: str) -> str | None:
        """Return the stored payload or ``None`` when absent/expired."""

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""

    def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""

    def keys(self, pattern: str) -> list[str]:
        """Return keys matching a glob ``pattern``."""

    def ping(self) -> bool:
        """Raise :class:`CacheUnavailable` when the backend cannot be reached."""

    def close(self) -> None:
        """Release connections."""


@contextmanager
def _translate_redis_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as exc:
        raise CacheUnavailable(f"Redis {operation} failed: {exc}") from exc
    except redis.exceptions.RedisError as exc:
        raise CacheBackendError(f"Redis {operation} failed: {exc}") from exc
    except OSError as exc:
        raise CacheUnavailable(f"Redis {operation} failed: {exc}") from exc


class RedisCacheBackend:
    """Redis adapter that maps transport failures onto the cache error taxonomy.

    ``reads_allowed=False`` is used while pages are generated ahead of time: the
    backend then refuses reads with :class:`CacheReadDisallowed` but still
    accepts writes so the first live request finds a warm cache.
    """

    name = "redis"

    def __init__(self, client: redis.Redis, *, reads_allowed: bool = True) -> None:
        self.client = client
        self.reads_allowed = reads_allowed

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        password: str | None = None,
        socket_timeout: float = 5.0,
        reads_allowed: bool = True,
    ) -> "RedisCacheBackend":
        options: dict[str, object] = {
            "decode_responses": True,
            "socket_timeout": socket_timeout,
            "socket_connect_timeout": socket_timeout,
        }
        if password:
            options["password"] = password
        return cls(redis.Redis.from_url(url, **options), reads_allowed=reads_allowed)

    def get(self, key: str) -> str | None:
        if not self.reads_allowed:
            raise CacheReadDisallowed("Cache reads are disabled during static generation")
        with _translate_redis_errors("GET"):
            return self.client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            with _translate_redis_errors("SET"):
                self.client.set(key, value, ex=ttl_seconds)
        except CacheBackendError as exc:
            raise CacheWriteFailed(str(exc)) from exc

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        with _translate_redis_errors("DEL"):
            return int(self.client.delete(*keys))

    def keys(self, pattern: str) -> list[str]:
        with _translate_redis_errors("SCAN"):
            return list(self.client.scan_iter(match=pattern, count=500))

    def ping(self) -> bool:
        with _translate_redis_errors("PING"):
            return bool(self.client.ping())

    def close(self) -> None:
        self.client.close()


class InMemoryCacheBackend:
    """Thread-safe in-process cache with TTL, selected with ``CACHE_BACKEND=memory``.

    Entries live in one process only, so it suits local development and tests
    rather than multi-worker deployments.
    """

    name = "memory"

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        reads_allowed: bool = True,
    ) -> None:
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = Lock()
        self._clock = clock
        self.reads_allowed = reads_allowed

    def get(self, key: str) -> str | None:
        if not self.reads_allowed:
            raise CacheReadDisallowed("Cache reads are disabled during static generation")
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if self._clock() >= expiry:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
        return removed

    def keys(self, pattern: str) -> list[str]:
        now = self._clock()
        with self._lock:
            return [
                key
                for key, (_, expiry) in self._entries.items()
                if now < expiry and fnmatch.fnmatchcase(key, pattern)
            ]

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        with self._lock:
            self._entries.clear()


def build_redis_backend(
    url: str | None,
    *,
    password: str | None = None,
    socket_timeout: float = 5.0,
    reads_allowed: bool = True,
) -> RedisCacheBackend | None:
    """Connect to Redis once at startup; return ``None`` when unusable."""

    if not url:
        logger.warning("REDIS_URL is not set; caching is disabled and every request hits the content source")
        return None

    backend = RedisCacheBackend.from_url(
        url,
        password=password,
        socket_timeout=socket_timeout,
        reads_allowed=reads_allowed,
    )
    try:
        backend.ping()
    except CacheBackendError as exc:
        logger.error("Redis unreachable at startup ({}); caching is disabled", exc)
        backend.close()
        return None

    logger.info("Redis cache initialized")
    return backend

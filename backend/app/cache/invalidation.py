"""Externally triggered cache eviction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from app.core.errors import CacheBackendError

from . import keys as cache_keys
from .manager import CacheManager


@dataclass(slots=True)
class CacheStats:
    available: bool
    total_keys: int
    room_keys: int
    blog_keys: int


class CacheInvalidator:
    """Evict keys when the upstream content changed out-of-band.

    Every operation is a logged no-op while the cache is degraded, and backend
    failures are logged rather than raised.
    """

    def __init__(self, manager: CacheManager):
        self._manager = manager

    def invalidate(self, key: str) -> bool:
        backend = self._manager.backend
        if backend is None:
            logger.warning("Cache INVALIDATE SKIP {} - cache not available", key)
            return False
        try:
            removed = backend.delete(key)
        except CacheBackendError as exc:
            logger.error("Cache INVALIDATION ERROR {}: {}", key, exc)
            return False
        logger.info("Cache INVALIDATED {}", key)
        return removed > 0

    def invalidate_many(self, keys: Iterable[str]) -> int:
        return sum(1 for key in keys if self.invalidate(key))

    def invalidate_pattern(self, pattern: str) -> int:
        backend = self._manager.backend
        if backend is None:
            logger.warning("Cache INVALIDATE SKIP pattern {} - cache not available", pattern)
            return 0
        try:
            matched = backend.keys(pattern)
            removed = backend.delete(*matched) if matched else 0
        except CacheBackendError as exc:
            logger.error("Cache PATTERN INVALIDATION ERROR {}: {}", pattern, exc)
            return 0
        logger.info("Cache INVALIDATED {} keys matching {}", removed, pattern)
        return removed

    def clear_all(self) -> int:
        removed = sum(self.invalidate_pattern(pattern) for pattern in cache_keys.ALL_PATTERNS)
        logger.info("Cache CLEARED {} keys", removed)
        return removed

    def stats(self) -> CacheStats:
        backend = self._manager.backend
        if backend is None:
            return CacheStats(available=False, total_keys=0, room_keys=0, blog_keys=0)
        try:
            return CacheStats(
                available=True,
                total_keys=len(backend.keys("*")),
                room_keys=len(backend.keys(cache_keys.ROOM_PATTERN)),
                blog_keys=len(backend.keys(cache_keys.BLOG_PATTERN)),
            )
        except CacheBackendError as exc:
            logger.error("Cache STATS ERROR: {}", exc)
            return CacheStats(available=False, total_keys=0, room_keys=0, blog_keys=0)

"""Cache-aside layer backed by a distributed TTL key-value store."""

from .backends import CacheBackend, InMemoryCacheBackend, RedisCacheBackend, build_redis_backend
from .codecs import CacheCodec
from .invalidation import CacheInvalidator, CacheStats
from .manager import (
    FALLBACK_STRATEGIES,
    CacheManager,
    CacheOutcome,
    CacheResult,
    FallbackStrategy,
    build_cache_manager,
)
from .singleflight import SingleFlight

__all__ = [
    "FALLBACK_STRATEGIES",
    "CacheBackend",
    "CacheCodec",
    "CacheInvalidator",
    "CacheManager",
    "CacheOutcome",
    "CacheResult",
    "CacheStats",
    "FallbackStrategy",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "SingleFlight",
    "build_cache_manager",
    "build_redis_backend",
]

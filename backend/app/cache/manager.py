"""Cache-aside get-or-compute over a distributed TTL cache.

Every transport failure of the cache is absorbed here; the only error a caller
can observe is :class:`ComputeFailed`, raised when the computation itself
failed.
"""

from __future__ import annotations

from concurrent import futures
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

from app.core.config import Settings
from app.core.errors import (
    CacheBackendError,
    CacheReadDisallowed,
    CacheUnavailable,
    ComputeFailed,
)

from .backends import CacheBackend, InMemoryCacheBackend, build_redis_backend
from .codecs import JSON_CODEC, CacheCodec
from .singleflight import SingleFlight

T = TypeVar("T")


class CacheOutcome(str, Enum):
    HIT = "hit"
    MISS_RECOVERED = "miss_recovered"
    BYPASSED = "bypassed"
    BUILD_FALLBACK = "build_fallback"
    CONNECTION_FALLBACK = "connection_fallback"
    BACKEND_FALLBACK = "backend_fallback"


@dataclass(slots=True)
class CacheResult(Generic[T]):
    key: str
    value: T
    outcome: CacheOutcome

    @property
    def from_cache(self) -> bool:
        return self.outcome is CacheOutcome.HIT


@dataclass(frozen=True, slots=True)
class FallbackStrategy:
    """How to recover when reading a key from the backend failed."""

    name: str
    handles: tuple[type[CacheBackendError], ...]
    outcome: CacheOutcome
    write_back: bool
    log_level: str


# Checked in order; the first strategy handling the error wins.
FALLBACK_STRATEGIES: tuple[FallbackStrategy, ...] = (
    FallbackStrategy(
        name="BUILD FALLBACK",
        handles=(CacheReadDisallowed,),
        outcome=CacheOutcome.BUILD_FALLBACK,
        write_back=True,
        log_level="INFO",
    ),
    FallbackStrategy(
        name="CONNECTION ERROR",
        handles=(CacheUnavailable,),
        outcome=CacheOutcome.CONNECTION_FALLBACK,
        write_back=False,
        log_level="WARNING",
    ),
    FallbackStrategy(
        name="ERROR",
        handles=(CacheBackendError,),
        outcome=CacheOutcome.BACKEND_FALLBACK,
        write_back=False,
        log_level="ERROR",
    ),
)


def select_fallback(
    error: CacheBackendError,
    strategies: tuple[FallbackStrategy, ...] = FALLBACK_STRATEGIES,
) -> FallbackStrategy:
    for strategy in strategies:
        if isinstance(error, strategy.handles):
            return strategy
    return strategies[-1]


class CacheManager:
    """Explicit cache handle built once at startup and passed to services.

    Constructed without a backend, the manager stays in degraded mode for its
    whole lifetime and computes every value directly.
    """

    def __init__(
        self,
        backend: CacheBackend | None,
        *,
        coalesce: bool = True,
        background_writes: bool = True,
        write_workers: int = 2,
        strategies: tuple[FallbackStrategy, ...] = FALLBACK_STRATEGIES,
    ) -> None:
        self._backend = backend
        self._flight = SingleFlight() if coalesce else None
        self._strategies = strategies
        self._executor: futures.ThreadPoolExecutor | None = None
        if backend is not None and background_writes:
            self._executor = futures.ThreadPoolExecutor(
                max_workers=write_workers, thread_name_prefix="cache-write"
            )
        self._pending: set[futures.Future[None]] = set()
        self._pending_lock = Lock()

    @property
    def backend(self) -> CacheBackend | None:
        return self._backend

    @property
    def degraded(self) -> bool:
        return self._backend is None

    def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], T],
        ttl: int,
        codec: CacheCodec[Any] = JSON_CODEC,
    ) -> T:
        return self.get_or_compute_result(key, compute_fn, ttl, codec).value

    def get_or_compute_result(
        self,
        key: str,
        compute_fn: Callable[[], T],
        ttl: int,
        codec: CacheCodec[Any] = JSON_CODEC,
    ) -> CacheResult[T]:
        if self._backend is None:
            logger.debug("Cache SKIP {} - cache unavailable, computing directly", key)
            value = self._compute_shared(key, compute_fn, store=None)
            return CacheResult(key, value, CacheOutcome.BYPASSED)

        try:
            cached = self._read(key, codec)
        except CacheBackendError as exc:
            strategy = select_fallback(exc, self._strategies)
            logger.log(strategy.log_level, "Cache {} {} - {}; computing directly", strategy.name, key, exc)
            store = (lambda value: self._store(key, value, ttl, codec)) if strategy.write_back else None
            value = self._compute_shared(key, compute_fn, store=store)
            return CacheResult(key, value, strategy.outcome)

        if cached is not None:
            logger.debug("Cache HIT {}", key)
            return CacheResult(key, cached, CacheOutcome.HIT)

        logger.info("Cache MISS {} - computing", key)
        value = self._compute_shared(
            key, compute_fn, store=lambda value: self._store(key, value, ttl, codec)
        )
        return CacheResult(key, value, CacheOutcome.MISS_RECOVERED)

    def _read(self, key: str, codec: CacheCodec[Any]) -> Any:
        raw = self._backend.get(key)
        if raw is None:
            return None
        try:
            return codec.decode(raw)
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Cache DECODE ERROR {} ({} codec): {}; treating as miss", key, codec.name, exc)
            return None

    def _compute(self, key: str, compute_fn: Callable[[], T]) -> T:
        try:
            return compute_fn()
        except Exception as exc:
            logger.error("Compute for {} failed: {}", key, exc)
            raise ComputeFailed(key) from exc

    def _compute_shared(
        self,
        key: str,
        compute_fn: Callable[[], T],
        *,
        store: Callable[[T], None] | None,
    ) -> T:
        def run() -> T:
            value = self._compute(key, compute_fn)
            if store is not None:
                store(value)
            return value

        if self._flight is None:
            return run()

        value, shared = self._flight.do(key, run)
        if shared:
            logger.debug("Cache COALESCED {} - reused in-flight computation", key)
        return value

    def _store(self, key: str, value: Any, ttl: int, codec: CacheCodec[Any]) -> None:
        if value is None:
            logger.info("Cache SKIP {} - computed value is None, not caching", key)
            return
        try:
            payload = codec.encode(value)
        except (TypeError, ValueError) as exc:
            logger.warning("Cache ENCODE ERROR {} ({} codec): {}", key, codec.name, exc)
            return

        if self._executor is None:
            self._write(key, payload, ttl)
            return

        try:
            future = self._executor.submit(self._write, key, payload, ttl)
        except RuntimeError as exc:
            # executor already shut down by close()
            logger.warning("Cache WRITE ERROR {}: {}; write skipped", key, exc)
            return
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._write_done)

    def _write(self, key: str, payload: str, ttl: int) -> None:
        try:
            self._backend.set(key, payload, ttl)
        except CacheBackendError as exc:
            logger.warning("Cache WRITE ERROR {}: {}", key, exc)
            return
        logger.debug("Cache SET {} ttl={}s", key, ttl)

    def _write_done(self, future: futures.Future[None]) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.opt(exception=future.exception()).error("Unexpected cache write failure")

    def flush(self, timeout: float | None = None) -> None:
        """Wait for pending background writes."""

        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            futures.wait(pending, timeout=timeout)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        if self._backend is not None:
            self._backend.close()


def build_cache_manager(settings: Settings) -> CacheManager:
    backend: CacheBackend | None
    if settings.cache_backend == "memory":
        logger.info("In-process memory cache initialized")
        backend = InMemoryCacheBackend(reads_allowed=not settings.is_static_build)
    else:
        backend = build_redis_backend(
            settings.redis_url,
            password=settings.redis_token,
            socket_timeout=settings.redis_socket_timeout,
            reads_allowed=not settings.is_static_build,
        )
    return CacheManager(
        backend,
        coalesce=settings.cache_coalesce_misses,
        write_workers=settings.cache_write_workers,
    )

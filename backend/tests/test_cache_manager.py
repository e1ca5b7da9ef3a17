from __future__ import annotations

import threading
import time

import pytest

from app.cache import CacheManager, CacheOutcome, InMemoryCacheBackend
from app.cache.codecs import ROOM_LIST_CODEC
from app.cache.manager import FALLBACK_STRATEGIES, build_cache_manager, select_fallback
from app.core.config import Settings
from app.core.errors import (
    CacheBackendError,
    CacheReadDisallowed,
    CacheUnavailable,
    CacheWriteFailed,
    ComputeFailed,
    SourceUnavailable,
)


class FlakyBackend(InMemoryCacheBackend):
    """In-memory backend whose reads/writes can be made to fail."""

    def __init__(self, *, read_error: Exception | None = None, write_error: Exception | None = None):
        super().__init__()
        self.read_error = read_error
        self.write_error = write_error
        self.writes: list[str] = []

    def get(self, key):
        if self.read_error is not None:
            raise self.read_error
        return super().get(key)

    def set(self, key, value, ttl_seconds):
        self.writes.append(key)
        if self.write_error is not None:
            raise self.write_error
        super().set(key, value, ttl_seconds)


class CountingCompute:
    def __init__(self, value, delay: float = 0.0):
        self.value = value
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.value


def test_miss_computes_and_stores_then_hits(cache_manager, memory_backend):
    compute = CountingCompute([1, 2, 3])

    first = cache_manager.get_or_compute_result("escape-rooms:all", compute, 60)
    second = cache_manager.get_or_compute_result("escape-rooms:all", compute, 60)

    assert first.outcome is CacheOutcome.MISS_RECOVERED
    assert second.outcome is CacheOutcome.HIT
    assert second.from_cache
    assert second.value == [1, 2, 3]
    assert compute.calls == 1
    assert memory_backend.get("escape-rooms:all") == "[1,2,3]"


def test_none_result_is_never_cached(cache_manager, memory_backend):
    compute = CountingCompute(None)

    assert cache_manager.get_or_compute("escape-rooms:id:1", compute, 60) is None
    assert cache_manager.get_or_compute("escape-rooms:id:1", compute, 60) is None

    assert compute.calls == 2
    assert memory_backend.keys("*") == []


def test_empty_collection_is_cached(cache_manager):
    compute = CountingCompute([])

    cache_manager.get_or_compute("escape-rooms:all", compute, 60)
    result = cache_manager.get_or_compute_result("escape-rooms:all", compute, 60)

    assert result.outcome is CacheOutcome.HIT
    assert result.value == []
    assert compute.calls == 1


def test_degraded_manager_computes_every_time():
    manager = CacheManager(None)
    compute = CountingCompute({"ok": True})

    result = manager.get_or_compute_result("escape-rooms:all", compute, 60)
    manager.get_or_compute("escape-rooms:all", compute, 60)

    assert manager.degraded
    assert result.outcome is CacheOutcome.BYPASSED
    assert compute.calls == 2


def test_static_build_skips_read_but_writes_back():
    backend = FlakyBackend(read_error=CacheReadDisallowed("static generation"))
    manager = CacheManager(backend, background_writes=False)

    result = manager.get_or_compute_result("escape-rooms:all", CountingCompute(["a"]), 60)

    assert result.outcome is CacheOutcome.BUILD_FALLBACK
    assert result.value == ["a"]
    assert backend.writes == ["escape-rooms:all"]


def test_connection_failure_falls_back_without_writing():
    backend = FlakyBackend(read_error=CacheUnavailable("connection refused"))
    manager = CacheManager(backend, background_writes=False)

    result = manager.get_or_compute_result("escape-rooms:all", CountingCompute(["a"]), 60)

    assert result.outcome is CacheOutcome.CONNECTION_FALLBACK
    assert result.value == ["a"]
    assert backend.writes == []


def test_other_backend_errors_use_generic_fallback():
    backend = FlakyBackend(read_error=CacheBackendError("WRONGTYPE"))
    manager = CacheManager(backend, background_writes=False)

    result = manager.get_or_compute_result("escape-rooms:all", CountingCompute(["a"]), 60)

    assert result.outcome is CacheOutcome.BACKEND_FALLBACK
    assert backend.writes == []


def test_fallback_strategies_are_checked_in_order():
    assert select_fallback(CacheReadDisallowed("x")).outcome is CacheOutcome.BUILD_FALLBACK
    assert select_fallback(CacheUnavailable("x")).outcome is CacheOutcome.CONNECTION_FALLBACK
    assert select_fallback(CacheWriteFailed("x")).outcome is CacheOutcome.BACKEND_FALLBACK
    assert [strategy.write_back for strategy in FALLBACK_STRATEGIES] == [True, False, False]


def test_write_failure_does_not_reach_the_caller():
    backend = FlakyBackend(write_error=CacheWriteFailed("OOM command not allowed"))
    manager = CacheManager(backend, background_writes=False)

    value = manager.get_or_compute("escape-rooms:all", CountingCompute(["a"]), 60)

    assert value == ["a"]
    assert backend.writes == ["escape-rooms:all"]


def test_background_write_lands_after_flush(memory_backend):
    manager = CacheManager(memory_backend, background_writes=True, write_workers=1)
    try:
        manager.get_or_compute("blog:recent:5", CountingCompute(["post"]), 60)
        manager.flush(timeout=5)
        assert memory_backend.get("blog:recent:5") == '["post"]'
    finally:
        manager.close()


def test_store_after_close_is_skipped_not_raised():
    manager = CacheManager(InMemoryCacheBackend(), background_writes=True, write_workers=1)
    manager.close()

    value = manager.get_or_compute("escape-rooms:all", CountingCompute([1]), 60)

    assert value == [1]


def test_memory_backend_selected_from_settings(monkeypatch):
    monkeypatch.delenv("EXECUTION_MODE", raising=False)
    manager = build_cache_manager(Settings(_env_file=None, cache_backend="memory"))
    try:
        assert not manager.degraded
        assert manager.backend.name == "memory"
        manager.get_or_compute("escape-rooms:all", CountingCompute(["a"]), 60)
        manager.flush(timeout=5)
        result = manager.get_or_compute_result("escape-rooms:all", CountingCompute(["b"]), 60)
        assert result.outcome is CacheOutcome.HIT
        assert result.value == ["a"]
    finally:
        manager.close()


def test_memory_backend_honours_static_build(monkeypatch):
    monkeypatch.delenv("EXECUTION_MODE", raising=False)
    manager = build_cache_manager(
        Settings(_env_file=None, cache_backend="memory", execution_mode="static")
    )
    try:
        result = manager.get_or_compute_result("escape-rooms:all", CountingCompute(["a"]), 60)
        assert result.outcome is CacheOutcome.BUILD_FALLBACK
    finally:
        manager.close()


def test_compute_failure_is_raised_with_cause(cache_manager, memory_backend):
    def boom():
        raise SourceUnavailable("content source timed out")

    with pytest.raises(ComputeFailed) as excinfo:
        cache_manager.get_or_compute("escape-rooms:all", boom, 60)

    assert excinfo.value.key == "escape-rooms:all"
    assert isinstance(excinfo.value.__cause__, SourceUnavailable)
    assert memory_backend.keys("*") == []


def test_compute_failure_in_degraded_mode_is_raised():
    manager = CacheManager(None)

    with pytest.raises(ComputeFailed):
        manager.get_or_compute("escape-rooms:all", lambda: 1 / 0, 60)


def test_undecodable_entry_is_treated_as_miss(cache_manager, memory_backend, make_room):
    memory_backend.set("escape-rooms:all", "{not json", 60)
    compute = CountingCompute([make_room("1")])

    result = cache_manager.get_or_compute_result("escape-rooms:all", compute, 60, ROOM_LIST_CODEC)

    assert result.outcome is CacheOutcome.MISS_RECOVERED
    assert [room.id for room in result.value] == ["1"]
    assert compute.calls == 1


def test_room_codec_preserves_domain_objects(cache_manager, make_room):
    rooms = [make_room("1", city="Austin", rating=4.5), make_room("2")]

    cache_manager.get_or_compute("escape-rooms:all", lambda: rooms, 60, ROOM_LIST_CODEC)
    cached = cache_manager.get_or_compute_result(
        "escape-rooms:all", CountingCompute([]), 60, ROOM_LIST_CODEC
    )

    assert cached.outcome is CacheOutcome.HIT
    assert cached.value == rooms


def _run_concurrently(count: int, fn) -> list[object]:
    results: list[object] = [None] * count
    start = threading.Barrier(count)

    def worker(index: int) -> None:
        start.wait()
        results[index] = fn()

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return results


def test_concurrent_misses_share_one_computation(memory_backend):
    manager = CacheManager(memory_backend, coalesce=True, background_writes=False)
    compute = CountingCompute(["rooms"], delay=0.2)

    results = _run_concurrently(
        5, lambda: manager.get_or_compute("escape-rooms:all", compute, 60)
    )

    assert compute.calls == 1
    assert results == [["rooms"]] * 5


def test_concurrent_misses_without_coalescing_compute_independently(memory_backend):
    manager = CacheManager(memory_backend, coalesce=False, background_writes=False)
    compute = CountingCompute(["rooms"], delay=0.2)

    results = _run_concurrently(
        3, lambda: manager.get_or_compute("escape-rooms:all", compute, 60)
    )

    assert compute.calls == 3
    assert results == [["rooms"]] * 3
    assert memory_backend.get("escape-rooms:all") == '["rooms"]'

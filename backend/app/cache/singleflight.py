"""Per-key request coalescing for concurrent cache misses."""

from __future__ import annotations

from threading import Event, Lock
from typing import Any, Callable, TypeVar

T = TypeVar("T")


class _Call:
    __slots__ = ("done", "value", "error", "waiters")

    def __init__(self) -> None:
        self.done = Event()
        self.value: Any = None
        self.error: BaseException | None = None
        self.waiters = 0


class SingleFlight:
    """Collapse concurrent calls for the same key into one execution.

    The first caller for a key runs ``fn``; callers arriving while it is in
    flight block until it finishes and receive the same value or exception.
    Nothing is remembered once the call completes.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._calls: dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], T]) -> tuple[T, bool]:
        """Run ``fn`` for ``key``; the flag is True when the result was shared."""

        with self._lock:
            call = self._calls.get(key)
            if call is not None:
                call.waiters += 1
                leader = False
            else:
                call = _Call()
                self._calls[key] = call
                leader = True

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.value, True

        try:
            call.value = fn()
        except BaseException as exc:
            call.error = exc
            raise
        finally:
            with self._lock:
                self._calls.pop(key, None)
            call.done.set()
        return call.value, False

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls

    def waiters(self, key: str) -> int:
        with self._lock:
            call = self._calls.get(key)
            return call.waiters if call is not None else 0

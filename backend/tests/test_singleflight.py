from __future__ import annotations

import threading
import time

import pytest

from app.cache import SingleFlight


def test_sequential_calls_each_execute():
    flight = SingleFlight()
    calls = []

    assert flight.do("k", lambda: calls.append(1) or "a") == ("a", False)
    assert flight.do("k", lambda: calls.append(2) or "b") == ("b", False)
    assert calls == [1, 2]
    assert not flight.in_flight("k")


def test_follower_receives_leader_result():
    flight = SingleFlight()
    release = threading.Event()
    entered = threading.Event()
    results: dict[str, tuple[object, bool]] = {}

    def slow():
        entered.set()
        release.wait(timeout=5)
        return "value"

    leader = threading.Thread(target=lambda: results.setdefault("leader", flight.do("k", slow)))
    leader.start()
    assert entered.wait(timeout=5)

    follower = threading.Thread(
        target=lambda: results.setdefault("follower", flight.do("k", lambda: "other"))
    )
    follower.start()
    for _ in range(500):
        if flight.waiters("k") == 1:
            break
        time.sleep(0.01)
    assert flight.waiters("k") == 1

    release.set()
    leader.join(timeout=5)
    follower.join(timeout=5)

    assert results["leader"] == ("value", False)
    assert results["follower"] == ("value", True)
    assert not flight.in_flight("k")


def test_follower_receives_leader_error():
    flight = SingleFlight()
    release = threading.Event()
    entered = threading.Event()
    errors: list[BaseException] = []

    def failing():
        entered.set()
        release.wait(timeout=5)
        raise RuntimeError("upstream down")

    def call(fn):
        try:
            flight.do("k", fn)
        except RuntimeError as exc:
            errors.append(exc)

    leader = threading.Thread(target=call, args=(failing,))
    leader.start()
    assert entered.wait(timeout=5)
    follower = threading.Thread(target=call, args=(lambda: "unused",))
    follower.start()
    for _ in range(500):
        if flight.waiters("k") == 1:
            break
        time.sleep(0.01)

    release.set()
    leader.join(timeout=5)
    follower.join(timeout=5)

    assert len(errors) == 2
    assert all(str(exc) == "upstream down" for exc in errors)


def test_error_does_not_poison_next_call():
    flight = SingleFlight()

    with pytest.raises(ValueError):
        flight.do("k", lambda: int("x"))

    assert flight.do("k", lambda: 7) == (7, False)

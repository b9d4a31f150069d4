"""Tests for the in-process sliding-window rate limiter."""

from backend import rate_limit
from backend.rate_limit import SlidingWindowLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_rejects():
    limiter = SlidingWindowLimiter(3, 60, clock=FakeClock())
    results = [limiter.hit("1.2.3.4") for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].reset_seconds == 60


def test_clients_are_counted_separately():
    limiter = SlidingWindowLimiter(1, 60, clock=FakeClock())
    assert limiter.hit("a").allowed
    assert not limiter.hit("a").allowed
    assert limiter.hit("b").allowed


def test_window_slides():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(2, 60, clock=clock)
    limiter.hit("a")
    clock.now += 30
    limiter.hit("a")
    rejected = limiter.hit("a")
    assert not rejected.allowed
    assert rejected.reset_seconds == 30

    clock.now += 30
    result = limiter.hit("a")
    assert result.allowed
    assert result.remaining == 0


def test_rejected_requests_are_not_recorded():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(1, 10, clock=clock)
    limiter.hit("a")
    for _ in range(5):
        clock.now += 1
        assert not limiter.hit("a").allowed
    clock.now += 5
    assert limiter.hit("a").allowed


def test_idle_clients_are_forgotten(monkeypatch):
    monkeypatch.setattr(rate_limit, "MAX_TRACKED_CLIENTS", 2)
    clock = FakeClock()
    limiter = SlidingWindowLimiter(1, 10, clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    clock.now += 11
    limiter.hit("c")
    assert set(limiter._hits) == {"c"}

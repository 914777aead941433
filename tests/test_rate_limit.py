"""Tests for the upstream request spacing limiter."""

import threading

import pytest

from formcache.consumers.cache.rate_limit import RateLimiter


class FakeMonotonic:
    def __init__(self, start: float = 100.0):
        self.value = start

    def __call__(self) -> float:
        return self.value


class TestReserve:
    def test_first_slot_is_immediate(self):
        limiter = RateLimiter(min_spacing=2.0, clock=FakeMonotonic())
        assert limiter.reserve() == 0

    def test_back_to_back_slots_are_spaced(self):
        limiter = RateLimiter(min_spacing=2.0, clock=FakeMonotonic())
        delays = [limiter.reserve() for _ in range(3)]
        assert delays == [0, 2.0, 4.0]

    def test_elapsed_time_counts_towards_spacing(self):
        clock = FakeMonotonic()
        limiter = RateLimiter(min_spacing=2.0, clock=clock)
        limiter.reserve()
        clock.value += 1.5
        assert limiter.reserve() == pytest.approx(0.5)
        clock.value += 10
        assert limiter.reserve() == 0

    def test_negative_spacing_rejected(self):
        with pytest.raises(ValueError):
            RateLimiter(min_spacing=-1)


class TestAdaptiveSpacing:
    def test_penalize_widens_and_caps(self):
        limiter = RateLimiter(min_spacing=2.0, max_spacing=10.0, clock=FakeMonotonic())
        assert limiter.penalize() == pytest.approx(3.0)
        assert limiter.penalize() == pytest.approx(4.5)
        for _ in range(10):
            limiter.penalize()
        assert limiter.spacing == 10.0

    def test_reward_relaxes_to_minimum(self):
        limiter = RateLimiter(min_spacing=2.0, max_spacing=10.0, clock=FakeMonotonic())
        limiter.penalize()
        assert limiter.reward() == pytest.approx(2.8)
        for _ in range(10):
            limiter.reward()
        assert limiter.spacing == 2.0

    def test_retry_after_pushes_next_slot(self):
        clock = FakeMonotonic()
        limiter = RateLimiter(min_spacing=1.0, max_spacing=10.0, clock=clock)
        limiter.reserve()
        limiter.penalize(retry_after=30)
        # Retry-After is capped at max_spacing
        assert limiter.reserve() == pytest.approx(10.0)


class TestAcquire:
    def test_zero_spacing_never_waits(self):
        limiter = RateLimiter(min_spacing=0.0)
        assert all(limiter.acquire() for _ in range(5))

    def test_stop_event_aborts_wait(self):
        limiter = RateLimiter(min_spacing=60.0)
        stop = threading.Event()
        assert limiter.acquire(stop) is True
        stop.set()
        # Second slot is 60s away; a set stop event returns immediately
        assert limiter.acquire(stop) is False

"""Upstream request spacing.

API-Football quotas are per minute and per day, so refreshes space out
request *starts* rather than capping throughput per window. The spacing
grows when upstream answers with a rate limit and relaxes again on success.
"""

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Spacing adjustments
PENALTY_FACTOR = 1.5
REWARD_STEP = 0.2  # seconds shaved off per success


class RateLimiter:
    """Thread-safe minimum-spacing limiter.

    Each acquire() reserves the next start slot under the lock, then waits
    for it outside the lock, so concurrent workers start at least `spacing`
    seconds apart without serializing the requests themselves.

    Usage:
        limiter = RateLimiter(min_spacing=2.0, max_spacing=10.0)
        if limiter.acquire(stop_event):
            fetch()
    """

    def __init__(
        self,
        min_spacing: float = 2.0,
        max_spacing: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_spacing < 0:
            raise ValueError("min_spacing must be >= 0")
        self._min_spacing = min_spacing
        self._max_spacing = max(max_spacing, min_spacing)
        self._spacing = min_spacing
        self._clock = clock
        self._next_slot: float | None = None
        self._lock = threading.Lock()

    @property
    def spacing(self) -> float:
        """Current spacing between request starts in seconds."""
        with self._lock:
            return self._spacing

    def reserve(self) -> float:
        """Reserve the next start slot.

        Returns:
            Seconds the caller must wait before starting its request
        """
        with self._lock:
            now = self._clock()
            start = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = start + self._spacing
            return start - now

    def acquire(self, stop_event: threading.Event | None = None) -> bool:
        """Block until the caller may start a request.

        Args:
            stop_event: Optional event; waiting aborts as soon as it is set

        Returns:
            True when the slot is reached, False if stop_event was set
        """
        delay = self.reserve()
        if stop_event is None:
            if delay > 0:
                time.sleep(delay)
            return True
        if delay > 0:
            return not stop_event.wait(delay)
        return not stop_event.is_set()

    def penalize(self, retry_after: float | None = None) -> float:
        """Widen spacing after an upstream rate limit.

        Args:
            retry_after: Optional upstream Retry-After hint in seconds; pushes
                the next slot out by at most max_spacing

        Returns:
            New spacing in seconds
        """
        with self._lock:
            self._spacing = min(
                self._max_spacing, max(self._spacing, self._min_spacing, 0.1) * PENALTY_FACTOR
            )
            if retry_after:
                pause_until = self._clock() + min(retry_after, self._max_spacing)
                if self._next_slot is None or self._next_slot < pause_until:
                    self._next_slot = pause_until
            spacing = self._spacing
        logger.warning(f"Rate limited by upstream, request spacing now {spacing:.1f}s")
        return spacing

    def reward(self) -> float:
        """Relax spacing back towards the minimum after a success."""
        with self._lock:
            self._spacing = max(self._min_spacing, self._spacing - REWARD_STEP)
            return self._spacing

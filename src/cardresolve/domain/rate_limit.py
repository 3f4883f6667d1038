"""Per-user sliding-window limit on submitted searches."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> float: ...


def _monotonic() -> float:
    return time.monotonic()


@dataclass(frozen=True, slots=True)
class RateDecision:
    allowed: bool
    used: int
    limit: int
    retry_after_seconds: float | None = None


class SlidingWindowLimiter:
    """Allow at most ``max_searches`` per user in any ``window_seconds`` span.

    A rejected request consumes nothing, so earlier accepted work is never
    charged twice. Users whose window has emptied are forgotten.
    """

    def __init__(
        self,
        max_searches: int,
        window_seconds: float,
        *,
        clock: Clock = _monotonic,
    ) -> None:
        if max_searches < 1:
            raise ValueError("max_searches must be positive")
        self.max_searches = max_searches
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[tuple[float, int]]] = {}
        self._lock = threading.Lock()

    def try_acquire(self, user_id: str, count: int = 1) -> RateDecision:
        now = self._clock()
        with self._lock:
            self._prune(now)
            events = self._events.get(user_id, deque())
            used = sum(amount for _, amount in events)
            if used + count > self.max_searches:
                retry_after = (events[0][0] + self.window_seconds - now) if events else None
                return RateDecision(
                    allowed=False,
                    used=used,
                    limit=self.max_searches,
                    retry_after_seconds=retry_after,
                )
            events.append((now, count))
            self._events[user_id] = events
            return RateDecision(allowed=True, used=used + count, limit=self.max_searches)

    def usage(self, user_id: str) -> int:
        now = self._clock()
        with self._lock:
            events = self._events.get(user_id)
            if events is None:
                return 0
            self._expire(events, now)
            if not events:
                del self._events[user_id]
            return sum(amount for _, amount in events)

    @property
    def tracked_users(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._events)

    def reset(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._events.clear()
            else:
                self._events.pop(user_id, None)

    def _prune(self, now: float) -> None:
        for user_id, events in list(self._events.items()):
            self._expire(events, now)
            if not events:
                del self._events[user_id]

    def _expire(self, events: deque[tuple[float, int]], now: float) -> None:
        cutoff = now - self.window_seconds
        while events and events[0][0] <= cutoff:
            events.popleft()

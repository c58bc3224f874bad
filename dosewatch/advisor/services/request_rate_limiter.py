from collections import deque
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Deque, Optional, Tuple


class SlidingWindowRateLimiter:
    """
    Caps outbound advisor requests to max_events per window_seconds.
    """

    def __init__(self, max_events: int = 15, window_seconds: int = 60):
        self.max_events = max_events
        self.window_seconds = window_seconds
        self._events: Deque[datetime] = deque()
        self._lock = Lock()

    def allow(self, now: Optional[datetime] = None) -> Tuple[bool, float]:
        current = now or datetime.now(timezone.utc)
        with self._lock:
            self._trim(current)
            if len(self._events) >= self.max_events:
                return False, self._retry_after(current)
            self._events.append(current)
            return True, 0.0

    def in_flight(self, now: Optional[datetime] = None) -> int:
        current = now or datetime.now(timezone.utc)
        with self._lock:
            self._trim(current)
            return len(self._events)

    def _trim(self, now: datetime) -> None:
        cutoff = now - timedelta(seconds=self.window_seconds)
        while self._events and self._events[0] < cutoff:
            self._events.popleft()

    def _retry_after(self, now: datetime) -> float:
        if not self._events:
            return 0.0
        target = self._events[0] + timedelta(seconds=self.window_seconds)
        return max(0.05, (target - now).total_seconds())

from datetime import datetime, timedelta, timezone
from dosewatch.core.time.time_source import TimeSource

class FrozenTimeSource(TimeSource):
    """
    Manually driven clock for tests and the dev runner.
    Stored as UTC and only moves forward, so cooldowns never see negative elapsed time.
    """
    def __init__(self, start_time: datetime):
        if start_time.tzinfo is None:
            raise ValueError("FrozenTimeSource requires timezone-aware datetime")
        self._current_time = start_time.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta):
        if delta < timedelta(0):
            raise ValueError(f"Cannot move clock backwards by {delta}")
        self._current_time += delta

    def advance_seconds(self, seconds: float):
        self.advance(timedelta(seconds=seconds))

from datetime import datetime, timezone
from dosewatch.core.time.time_source import TimeSource

class SystemTimeSource(TimeSource):
    """
    Wall clock used outside tests and the dev runner.
    Returns UTC-aware datetimes; local wall-clock rules convert at the edges.
    """
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ListeningSession:
    start_time: datetime
    end_time: datetime
    session_id: str
    sample_count: int

    @property
    def duration(self) -> float:
        return max(0.0, (self.end_time - self.start_time).total_seconds())

    @property
    def minutes(self) -> int:
        return int(self.duration // 60)

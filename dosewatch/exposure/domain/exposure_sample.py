from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ExposureSample:
    """
    One headphone audio exposure measurement.
    Supplied already deduplicated and chronologically ordered.
    """
    start_time: datetime
    end_time: datetime
    level_db: float

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    @property
    def contributes_to_dose(self) -> bool:
        return self.duration > 0 and self.level_db > 0

from dataclasses import dataclass
from typing import Optional

from dosewatch.exposure.domain.exposure_status import ExposureStatus


@dataclass(frozen=True)
class DoseResult:
    """
    Derived daily dose. Recomputed every evaluation, never persisted by the core.
    """
    dose_percent: float
    total_exposure_seconds: float
    average_level: Optional[float]
    peak_level: Optional[float]
    time_above_85db: float
    time_above_90db: float

    @classmethod
    def empty(cls) -> "DoseResult":
        return cls(
            dose_percent=0.0,
            total_exposure_seconds=0.0,
            average_level=None,
            peak_level=None,
            time_above_85db=0.0,
            time_above_90db=0.0,
        )

    @property
    def status(self) -> ExposureStatus:
        return ExposureStatus.from_dose(self.dose_percent)

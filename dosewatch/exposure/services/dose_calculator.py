import math
from typing import Optional, Sequence

from dosewatch.exposure.domain.dose_model import DoseModel
from dosewatch.exposure.domain.dose_result import DoseResult
from dosewatch.exposure.domain.exposure_sample import ExposureSample

MIN_ALLOWABLE_SECONDS = 1.0
MAX_ALLOWABLE_SECONDS = 24 * 3600.0


class DoseCalculator:
    """
    Pure dose arithmetic for an exchange-rate standard (NIOSH by default).
    """

    def __init__(self, model: Optional[DoseModel] = None):
        self.model = model or DoseModel.niosh()

    def allowable_time(self, level_db: float) -> float:
        exponent = (self.model.reference_level_db - level_db) / self.model.exchange_rate_db
        allowable = self.model.reference_duration_seconds * math.pow(2.0, exponent)
        return min(max(allowable, MIN_ALLOWABLE_SECONDS), MAX_ALLOWABLE_SECONDS)

    def sample_dose(self, level_db: float, duration_seconds: float) -> float:
        if duration_seconds <= 0 or level_db <= 0:
            return 0.0
        return (duration_seconds / self.allowable_time(level_db)) * 100.0

    def calculate_daily_dose(self, samples: Sequence[ExposureSample]) -> DoseResult:
        if not samples:
            return DoseResult.empty()

        total_dose = 0.0
        total_seconds = 0.0
        weighted_level_sum = 0.0
        peak_level = 0.0
        above_85 = 0.0
        above_90 = 0.0

        for sample in samples:
            if not sample.contributes_to_dose:
                continue
            duration = sample.duration
            level = sample.level_db

            total_dose += self.sample_dose(level, duration)
            total_seconds += duration
            weighted_level_sum += level * duration
            peak_level = max(peak_level, level)

            if level >= 85:
                above_85 += duration
            if level >= 90:
                above_90 += duration

        return DoseResult(
            dose_percent=total_dose,
            total_exposure_seconds=total_seconds,
            average_level=weighted_level_sum / total_seconds if total_seconds > 0 else None,
            peak_level=peak_level if peak_level > 0 else None,
            time_above_85db=above_85,
            time_above_90db=above_90,
        )

    def remaining_safe_time(self, current_dose_percent: float, level_db: float) -> float:
        remaining_dose = max(100.0 - current_dose_percent, 0.0)
        return (remaining_dose / 100.0) * self.allowable_time(level_db)

    def safe_level_for_remaining_time(
            self,
            current_dose_percent: float,
            remaining_listening_seconds: float
    ) -> Optional[float]:
        """
        Level that would use up exactly the remaining dose over the given listening time.
        None when the budget is already spent or no listening time is requested.
        """
        remaining_dose = 100.0 - current_dose_percent
        if remaining_dose <= 0 or remaining_listening_seconds <= 0:
            return None
        target_allowable = remaining_listening_seconds * 100.0 / remaining_dose
        return self.model.reference_level_db - self.model.exchange_rate_db * math.log2(
            target_allowable / self.model.reference_duration_seconds
        )

    @staticmethod
    def format_duration(seconds: float) -> str:
        total = int(max(seconds, 0))
        hours = total // 3600
        minutes = (total % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        if minutes > 0:
            return f"{minutes} min"
        return "< 1 min"

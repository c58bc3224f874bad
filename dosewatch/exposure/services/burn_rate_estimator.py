from datetime import datetime, timedelta
from typing import Optional, Sequence

from dosewatch.exposure.domain.burn_rate_analysis import BurnRateAnalysis
from dosewatch.exposure.domain.exposure_sample import ExposureSample
from dosewatch.exposure.services.dose_calculator import DoseCalculator

DEFAULT_WINDOW_SECONDS = 30 * 60.0
DEFAULT_RECENCY_SECONDS = 10 * 60.0


class BurnRateEstimator:
    """
    Estimates how fast dose is accruing from a recent window of samples
    and projects the time left until the daily limit.
    """

    def __init__(
            self,
            calculator: DoseCalculator,
            window_seconds: float = DEFAULT_WINDOW_SECONDS,
            recency_seconds: float = DEFAULT_RECENCY_SECONDS
    ):
        self.calculator = calculator
        self.window_seconds = window_seconds
        self.recency_seconds = recency_seconds

    def analyze(
            self,
            recent_samples: Sequence[ExposureSample],
            now: datetime,
            current_dose_percent: float,
            limit_percent: float,
            is_headphone_output: bool
    ) -> BurnRateAnalysis:
        window_start = now - timedelta(seconds=self.window_seconds)
        in_window = [s for s in recent_samples if s.end_time > window_start and s.start_time < now]
        if not in_window:
            return BurnRateAnalysis.idle(self.window_seconds)

        window_dose = 0.0
        for sample in in_window:
            overlap_start = max(sample.start_time, window_start)
            overlap_end = min(sample.end_time, now)
            seconds = (overlap_end - overlap_start).total_seconds()
            window_dose += self.calculator.sample_dose(sample.level_db, seconds)

        burn_rate = window_dose / (self.window_seconds / 3600.0)
        active = is_headphone_output and self.has_recent_sample(in_window, now)

        return BurnRateAnalysis(
            burn_rate_per_hour=burn_rate,
            eta_to_limit_seconds=self.eta_to_limit(current_dose_percent, limit_percent, burn_rate, active),
            is_actively_listening=active,
            window_dose_percent=window_dose,
            window_seconds=self.window_seconds,
        )

    def has_recent_sample(self, samples: Sequence[ExposureSample], now: datetime) -> bool:
        if not samples:
            return False
        newest_end = max(s.end_time for s in samples)
        return (now - newest_end).total_seconds() <= self.recency_seconds

    @staticmethod
    def eta_to_limit(
            current_dose_percent: float,
            limit_percent: float,
            burn_rate_per_hour: float,
            is_actively_listening: bool
    ) -> Optional[float]:
        if current_dose_percent >= limit_percent:
            return 0.0 if is_actively_listening else None
        if burn_rate_per_hour <= 0:
            return None
        return ((limit_percent - current_dose_percent) / burn_rate_per_hour) * 3600.0

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BurnRateAnalysis:
    burn_rate_per_hour: float
    eta_to_limit_seconds: Optional[float]
    is_actively_listening: bool
    window_dose_percent: float = 0.0
    window_seconds: float = 0.0

    @classmethod
    def idle(cls, window_seconds: float) -> "BurnRateAnalysis":
        return cls(
            burn_rate_per_hour=0.0,
            eta_to_limit_seconds=None,
            is_actively_listening=False,
            window_dose_percent=0.0,
            window_seconds=window_seconds,
        )

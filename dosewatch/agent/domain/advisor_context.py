from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AdvisorContext:
    """
    Structured fact set handed to the advisory decision source.
    """
    dose_percent: float
    burn_rate_per_hour: float
    eta_seconds: Optional[float]
    is_actively_listening: bool
    current_level_db: Optional[float]
    session_minutes: int
    daily_exposure_limit_percent: int
    volume_alert_threshold_db: int
    quiet_hours_active: bool

    @property
    def eta_minutes(self) -> Optional[int]:
        if self.eta_seconds is None:
            return None
        return int(self.eta_seconds // 60)

    def to_facts(self) -> Dict[str, Any]:
        return {
            "dosePercent": int(self.dose_percent),
            "burnRatePerHour": round(self.burn_rate_per_hour, 1),
            "etaMinutes": self.eta_minutes,
            "isActivelyListening": self.is_actively_listening,
            "currentLevelDB": round(self.current_level_db, 1) if self.current_level_db is not None else None,
            "sessionMinutes": self.session_minutes,
            "dailyExposureLimit": self.daily_exposure_limit_percent,
            "volumeAlertThresholdDB": self.volume_alert_threshold_db,
            "quietHoursActive": self.quiet_hours_active,
        }

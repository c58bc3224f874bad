from dataclasses import dataclass, replace
from datetime import time
from typing import Optional

from dosewatch.core.domain.exceptions import SettingOutOfRange
from dosewatch.exposure.domain.dose_model import DoseStandard

DAILY_LIMIT_BOUNDS = (70, 100)
VOLUME_THRESHOLD_BOUNDS = (60, 95)


@dataclass(frozen=True)
class UserSettings:
    """
    Snapshot of listener preferences as seen by one evaluation cycle.
    """
    daily_exposure_limit_percent: int = 100
    volume_alert_threshold_db: int = 85
    break_reminders_enabled: bool = True
    break_interval_seconds: float = 60 * 60.0
    break_duration_seconds: float = 5 * 60.0
    instant_volume_alerts_enabled: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: Optional[time] = None
    quiet_hours_end: Optional[time] = None
    quiet_hours_strict_mode: bool = False
    dose_standard: DoseStandard = DoseStandard.NIOSH

    @property
    def break_interval_minutes(self) -> int:
        return int(self.break_interval_seconds // 60)

    @property
    def break_duration_minutes(self) -> int:
        return int(self.break_duration_seconds // 60)

    def with_daily_exposure_limit(self, percent: int) -> "UserSettings":
        _check_bounds("daily_exposure_limit_percent", percent, *DAILY_LIMIT_BOUNDS)
        return replace(self, daily_exposure_limit_percent=percent)

    def with_volume_alert_threshold(self, level_db: int) -> "UserSettings":
        _check_bounds("volume_alert_threshold_db", level_db, *VOLUME_THRESHOLD_BOUNDS)
        return replace(self, volume_alert_threshold_db=level_db)


def _check_bounds(name: str, value: float, minimum: float, maximum: float) -> None:
    if value < minimum or value > maximum:
        raise SettingOutOfRange(name, value, minimum, maximum)

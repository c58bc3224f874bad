from datetime import datetime, time, timezone, tzinfo
from typing import Optional

from dosewatch.agent.domain.user_settings import UserSettings


class QuietHoursPolicy:
    """
    Decides whether the configured quiet-hours window covers a given instant.
    The window is inclusive at minute resolution and may wrap past midnight.
    """

    def __init__(self, local_tz: Optional[tzinfo] = None):
        self.local_tz = local_tz or timezone.utc

    def is_in_window(self, settings: UserSettings, now: datetime) -> bool:
        if not settings.quiet_hours_enabled:
            return False
        if settings.quiet_hours_start is None or settings.quiet_hours_end is None:
            return False

        local_now = now.astimezone(self.local_tz)
        now_minutes = _minutes(local_now.time())
        start_minutes = _minutes(settings.quiet_hours_start)
        end_minutes = _minutes(settings.quiet_hours_end)

        if start_minutes <= end_minutes:
            return start_minutes <= now_minutes <= end_minutes
        return now_minutes >= start_minutes or now_minutes <= end_minutes

    def suppresses_interventions(self, settings: UserSettings, now: datetime) -> bool:
        return self.is_in_window(settings, now) and not settings.quiet_hours_strict_mode


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute

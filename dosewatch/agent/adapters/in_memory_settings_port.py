from threading import Lock
from typing import Optional

from dosewatch.agent.domain.user_settings import UserSettings
from dosewatch.agent.interfaces.settings_port import SettingsPort


class InMemorySettingsPort(SettingsPort):
    def __init__(self, settings: Optional[UserSettings] = None):
        self._settings = settings or UserSettings()
        self._lock = Lock()

    def snapshot(self) -> UserSettings:
        return self._settings

    def set_daily_exposure_limit(self, percent: int) -> UserSettings:
        with self._lock:
            self._settings = self._settings.with_daily_exposure_limit(percent)
            return self._settings

    def set_volume_alert_threshold(self, level_db: int) -> UserSettings:
        with self._lock:
            self._settings = self._settings.with_volume_alert_threshold(level_db)
            return self._settings

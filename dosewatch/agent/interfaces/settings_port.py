from abc import ABC, abstractmethod

from dosewatch.agent.domain.user_settings import UserSettings


class SettingsPort(ABC):
    """
    Access to the listener's settings.
    Setters are bounds-checked and raise SettingOutOfRange.
    """

    @abstractmethod
    def snapshot(self) -> UserSettings:
        pass

    @abstractmethod
    def set_daily_exposure_limit(self, percent: int) -> UserSettings:
        pass

    @abstractmethod
    def set_volume_alert_threshold(self, level_db: int) -> UserSettings:
        pass

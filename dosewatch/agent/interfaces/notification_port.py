from abc import ABC, abstractmethod
from typing import Optional


class NotificationPort(ABC):
    """
    Fire-and-forget delivery of listener-facing messages.
    """

    @abstractmethod
    def send_limit_reached(self, dose_percent: float, current_level_db: Optional[float]) -> None:
        pass

    @abstractmethod
    def send_eta_warning(self, dose_percent: float, eta_seconds: Optional[float]) -> None:
        pass

    @abstractmethod
    def send_break_reminder(self, session_minutes: int, break_minutes: int) -> None:
        pass

    @abstractmethod
    def send_volume_suggestion(self, level_db: float, dose_percent: float) -> None:
        pass

    @abstractmethod
    def send_agent_notification(self, title: str, body: str) -> None:
        pass

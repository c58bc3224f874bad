from typing import Optional

from dosewatch.agent.interfaces.notification_port import NotificationPort
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger
from dosewatch.exposure.services.dose_calculator import DoseCalculator


class LoggingNotificationPort(NotificationPort):
    """
    Writes notifications to the structured log. Used where no delivery channel is wired.
    """

    def __init__(self, structured_logger: Optional[StructuredAgentLogger] = None):
        self.structured_logger = structured_logger or StructuredAgentLogger()

    def send_limit_reached(self, dose_percent: float, current_level_db: Optional[float]) -> None:
        self.structured_logger.emit(
            "notification",
            kind="limit_reached",
            title="Daily Limit Reached",
            body=f"You've used {dose_percent:.0f}% of your daily sound allowance. Consider giving your ears a break.",
            current_level_db=current_level_db,
        )

    def send_eta_warning(self, dose_percent: float, eta_seconds: Optional[float]) -> None:
        eta = DoseCalculator.format_duration(eta_seconds) if eta_seconds is not None else "soon"
        self.structured_logger.emit(
            "notification",
            kind="eta_warning",
            title="Approaching Limit",
            body=f"At {dose_percent:.0f}% you'll hit your daily limit in {eta}. Try lowering your volume.",
        )

    def send_break_reminder(self, session_minutes: int, break_minutes: int) -> None:
        self.structured_logger.emit(
            "notification",
            kind="break_reminder",
            title="Time for a Break",
            body=f"You've been listening for {session_minutes} min. Rest your ears for {break_minutes} min.",
        )

    def send_volume_suggestion(self, level_db: float, dose_percent: float) -> None:
        self.structured_logger.emit(
            "notification",
            kind="volume_suggestion",
            title="Lower the Volume",
            body=f"Current level is {level_db:.0f} dB with {dose_percent:.0f}% of today's budget used.",
        )

    def send_agent_notification(self, title: str, body: str) -> None:
        self.structured_logger.emit("notification", kind="agent", title=title, body=body)

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dosewatch.agent.interfaces.notification_port import NotificationPort


@dataclass(frozen=True)
class SentNotification:
    kind: str
    fields: Dict[str, Any] = field(default_factory=dict)


class RecordingNotificationPort(NotificationPort):
    """
    Keeps every notification in memory instead of delivering it.
    """

    def __init__(self):
        self.sent: List[SentNotification] = []

    def send_limit_reached(self, dose_percent: float, current_level_db: Optional[float]) -> None:
        self._record("limit_reached", dose_percent=dose_percent, current_level_db=current_level_db)

    def send_eta_warning(self, dose_percent: float, eta_seconds: Optional[float]) -> None:
        self._record("eta_warning", dose_percent=dose_percent, eta_seconds=eta_seconds)

    def send_break_reminder(self, session_minutes: int, break_minutes: int) -> None:
        self._record("break_reminder", session_minutes=session_minutes, break_minutes=break_minutes)

    def send_volume_suggestion(self, level_db: float, dose_percent: float) -> None:
        self._record("volume_suggestion", level_db=level_db, dose_percent=dose_percent)

    def send_agent_notification(self, title: str, body: str) -> None:
        self._record("agent_notification", title=title, body=body)

    def kinds(self) -> List[str]:
        return [n.kind for n in self.sent]

    def _record(self, kind: str, **fields: Any) -> None:
        self.sent.append(SentNotification(kind, dict(fields)))

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from dosewatch.agent.domain.compliance_event import ComplianceOutcome
from dosewatch.core.domain.exceptions import InterventionAlreadyResolved


class InterventionTrigger(Enum):
    LIMIT_REACHED = "limit_reached"
    ETA_WARNING = "eta_warning"
    BREAK_INTERVAL = "break_interval"
    VOLUME_ALERT = "volume_alert"
    AI_NOTIFY = "ai_notify"
    AI_BREAK = "ai_break"
    AI_SYNC = "ai_sync"
    AI_ADJUST = "ai_adjust"


class InterventionAction(Enum):
    NOTIFY_LIMIT = "notify_limit"
    NOTIFY_ETA = "notify_eta"
    NOTIFY_BREAK = "notify_break"
    SUGGEST_VOLUME = "suggest_volume"
    NOTIFY = "notify"
    BREAK = "break"
    SYNC = "sync"
    ADJUST_SETTINGS = "adjust_settings"


@dataclass
class InterventionEvent:
    """
    Record of one agent action.
    Resolved exactly once by the compliance pass.
    """
    id: UUID
    timestamp: datetime
    trigger: InterventionTrigger
    action: InterventionAction
    dose_percent_at_time: float
    message: Optional[str] = None
    eta_seconds_at_time: Optional[float] = None
    burn_rate_at_time: Optional[float] = None
    session_id: Optional[str] = None
    is_resolved: bool = False
    resolved_at: Optional[datetime] = None
    compliance_outcome: Optional[ComplianceOutcome] = None

    def resolve(self, outcome: ComplianceOutcome, resolved_at: datetime) -> None:
        if self.is_resolved:
            raise InterventionAlreadyResolved(f"Intervention {self.id} already resolved as {self.compliance_outcome}")
        self.is_resolved = True
        self.resolved_at = resolved_at
        self.compliance_outcome = outcome

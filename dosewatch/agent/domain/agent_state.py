from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AgentState:
    """
    Mutable bookkeeping of the evaluation loop.
    Only touched inside a single evaluation call.
    """
    last_evaluated_at: Optional[datetime] = None
    last_intervention_at: Optional[datetime] = None
    last_break_reminder_at: Optional[datetime] = None
    last_dose_percent: float = 0.0
    last_burn_rate_per_hour: Optional[float] = None
    last_eta_seconds: Optional[float] = None
    last_sync_at: Optional[datetime] = None

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from dosewatch.agent.domain.agent_decision import AgentDecision
from dosewatch.agent.domain.compliance_event import ComplianceEvent
from dosewatch.agent.domain.intervention_event import InterventionEvent
from dosewatch.agent.domain.sync_status import SyncResult
from dosewatch.agent.domain.user_settings import UserSettings
from dosewatch.exposure.domain.dose_result import DoseResult
from dosewatch.exposure.domain.exposure_sample import ExposureSample
from dosewatch.insight.domain.insight import Insight


class SkipReason(Enum):
    EVALUATION_COOLDOWN = "evaluation_cooldown"
    QUIET_HOURS = "quiet_hours"
    NOT_LISTENING = "not_listening"
    INTERVENTION_COOLDOWN = "intervention_cooldown"


class DecisionSource(Enum):
    ADVISOR = "advisor"
    RULES = "rules"


@dataclass(frozen=True)
class EvaluationInput:
    dose: DoseResult
    samples: Sequence[ExposureSample]
    insight: Insight
    settings: UserSettings
    current_level_db: Optional[float] = None
    is_headphone_output: bool = True
    # Recent samples regardless of day boundaries, used by the compliance pass
    compliance_samples: Optional[Sequence[ExposureSample]] = None


@dataclass
class EvaluationOutcome:
    """
    What one evaluation cycle did. Returned to the caller for logging and tests.
    """
    evaluated_at: datetime
    skip_reason: Optional[SkipReason] = None
    intervention: Optional[InterventionEvent] = None
    decision_source: Optional[DecisionSource] = None
    advisor_decision: Optional[AgentDecision] = None
    advisor_suppressed: bool = False
    sync_result: Optional[SyncResult] = None
    compliance_events: List[ComplianceEvent] = field(default_factory=list)

    @property
    def acted(self) -> bool:
        return self.intervention is not None

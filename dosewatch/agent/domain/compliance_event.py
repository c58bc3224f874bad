from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class ComplianceOutcome(Enum):
    STOPPED_LISTENING = "stopped_listening"
    VOLUME_REDUCED = "volume_reduced"
    NO_CHANGE = "no_change"


@dataclass(frozen=True)
class ComplianceEvent:
    id: UUID
    intervention_id: UUID
    timestamp: datetime
    outcome: ComplianceOutcome
    response_seconds: Optional[float] = None
    volume_delta_db: Optional[float] = None
    stopped_listening: bool = False


@dataclass(frozen=True)
class ComplianceSummary:
    total: int
    stopped_listening: int
    volume_reduced: int
    no_change: int

    @property
    def heeded_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.stopped_listening + self.volume_reduced) / self.total

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from dosewatch.agent.domain.compliance_event import ComplianceEvent
from dosewatch.agent.domain.intervention_event import InterventionEvent


class AgentEventStore(ABC):
    """
    Append-oriented storage for interventions and their compliance outcomes.
    """

    @abstractmethod
    def append_intervention(self, event: InterventionEvent) -> None:
        pass

    @abstractmethod
    def update_intervention(self, event: InterventionEvent) -> None:
        pass

    @abstractmethod
    def get_intervention(self, intervention_id: UUID) -> Optional[InterventionEvent]:
        pass

    @abstractmethod
    def list_unresolved_interventions(self) -> List[InterventionEvent]:
        pass

    @abstractmethod
    def list_interventions(self) -> List[InterventionEvent]:
        pass

    @abstractmethod
    def resolve_intervention(self, intervention: InterventionEvent, compliance: ComplianceEvent) -> None:
        """Stores the resolved intervention and its compliance event together, or neither."""
        pass

    @abstractmethod
    def append_compliance(self, event: ComplianceEvent) -> None:
        pass

    @abstractmethod
    def list_compliance_events(self) -> List[ComplianceEvent]:
        pass

from dataclasses import replace
from typing import Dict, List, Optional
from uuid import UUID

from dosewatch.agent.domain.compliance_event import ComplianceEvent
from dosewatch.agent.domain.intervention_event import InterventionEvent
from dosewatch.agent.interfaces.agent_event_store import AgentEventStore


class InMemoryAgentEventStore(AgentEventStore):
    """
    In-memory storage for interventions and compliance events.
    Hands out copies so callers must write changes back through update_intervention.
    """

    def __init__(self):
        self._interventions: Dict[UUID, InterventionEvent] = {}
        self._compliance: List[ComplianceEvent] = []

    def append_intervention(self, event: InterventionEvent) -> None:
        if event.id in self._interventions:
            raise ValueError(f"Intervention {event.id} already stored")
        self._interventions[event.id] = replace(event)

    def update_intervention(self, event: InterventionEvent) -> None:
        if event.id not in self._interventions:
            raise KeyError(event.id)
        self._interventions[event.id] = replace(event)

    def get_intervention(self, intervention_id: UUID) -> Optional[InterventionEvent]:
        stored = self._interventions.get(intervention_id)
        return replace(stored) if stored else None

    def list_unresolved_interventions(self) -> List[InterventionEvent]:
        return [replace(e) for e in self._ordered() if not e.is_resolved]

    def list_interventions(self) -> List[InterventionEvent]:
        return [replace(e) for e in self._ordered()]

    def resolve_intervention(self, intervention: InterventionEvent, compliance: ComplianceEvent) -> None:
        if intervention.id not in self._interventions:
            raise KeyError(intervention.id)
        if any(c.intervention_id == intervention.id for c in self._compliance):
            raise ValueError(f"Intervention {intervention.id} already has a compliance event")
        self._interventions[intervention.id] = replace(intervention)
        self._compliance.append(compliance)

    def append_compliance(self, event: ComplianceEvent) -> None:
        self._compliance.append(event)

    def list_compliance_events(self) -> List[ComplianceEvent]:
        return list(self._compliance)

    def _ordered(self) -> List[InterventionEvent]:
        return sorted(self._interventions.values(), key=lambda e: e.timestamp)

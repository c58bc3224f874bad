from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from dosewatch.agent.domain.agent_state import AgentState
from dosewatch.agent.domain.compliance_event import ComplianceEvent, ComplianceOutcome
from dosewatch.agent.domain.intervention_event import (
    InterventionAction,
    InterventionEvent,
    InterventionTrigger,
)
from dosewatch.agent.interfaces.agent_event_store import AgentEventStore
from dosewatch.agent.interfaces.agent_state_store import AgentStateStore
from dosewatch.agent.store.models import (
    AgentStateModel,
    Base,
    ComplianceEventModel,
    InterventionEventModel,
)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def create_session_factory(engine: Engine) -> sessionmaker:
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autoflush=False, bind=engine, expire_on_commit=False)


class SqlAgentEventStore(AgentEventStore):
    """
    SQLAlchemy-backed event store. Works on PostgreSQL and SQLite.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @classmethod
    def from_dsn(cls, dsn: str) -> "SqlAgentEventStore":
        engine = create_engine(dsn, pool_pre_ping=True, future=True)
        return cls(create_session_factory(engine))

    def append_intervention(self, event: InterventionEvent) -> None:
        with self.session_factory.begin() as session:
            session.add(self._to_model(event, InterventionEventModel()))

    def update_intervention(self, event: InterventionEvent) -> None:
        with self.session_factory.begin() as session:
            model = session.get(InterventionEventModel, event.id)
            if model is None:
                raise KeyError(event.id)
            self._to_model(event, model)

    def get_intervention(self, intervention_id: UUID) -> Optional[InterventionEvent]:
        with self.session_factory() as session:
            model = session.get(InterventionEventModel, intervention_id)
            return self._to_domain(model) if model else None

    def list_unresolved_interventions(self) -> List[InterventionEvent]:
        with self.session_factory() as session:
            rows = (
                session.query(InterventionEventModel)
                .filter(InterventionEventModel.is_resolved.is_(False))
                .order_by(InterventionEventModel.timestamp.asc())
                .all()
            )
            return [self._to_domain(row) for row in rows]

    def list_interventions(self) -> List[InterventionEvent]:
        with self.session_factory() as session:
            rows = session.query(InterventionEventModel).order_by(InterventionEventModel.timestamp.asc()).all()
            return [self._to_domain(row) for row in rows]

    def resolve_intervention(self, intervention: InterventionEvent, compliance: ComplianceEvent) -> None:
        with self.session_factory.begin() as session:
            model = session.get(InterventionEventModel, intervention.id)
            if model is None:
                raise KeyError(intervention.id)
            self._to_model(intervention, model)
            session.add(self._compliance_model(compliance))

    def append_compliance(self, event: ComplianceEvent) -> None:
        with self.session_factory.begin() as session:
            session.add(self._compliance_model(event))

    def list_compliance_events(self) -> List[ComplianceEvent]:
        with self.session_factory() as session:
            rows = session.query(ComplianceEventModel).order_by(ComplianceEventModel.timestamp.asc()).all()
            return [
                ComplianceEvent(
                    id=row.id,
                    intervention_id=row.intervention_id,
                    timestamp=_utc(row.timestamp),
                    outcome=ComplianceOutcome(row.outcome),
                    response_seconds=row.response_seconds,
                    volume_delta_db=row.volume_delta_db,
                    stopped_listening=row.stopped_listening,
                )
                for row in rows
            ]

    @staticmethod
    def _compliance_model(event: ComplianceEvent) -> ComplianceEventModel:
        return ComplianceEventModel(
            id=event.id,
            intervention_id=event.intervention_id,
            timestamp=event.timestamp,
            outcome=event.outcome.value,
            response_seconds=event.response_seconds,
            volume_delta_db=event.volume_delta_db,
            stopped_listening=event.stopped_listening,
        )

    def _to_model(self, event: InterventionEvent, model: InterventionEventModel) -> InterventionEventModel:
        model.id = event.id
        model.timestamp = event.timestamp
        model.trigger = event.trigger.value
        model.action = event.action.value
        model.message = event.message
        model.dose_percent = event.dose_percent_at_time
        model.eta_seconds = event.eta_seconds_at_time
        model.burn_rate_per_hour = event.burn_rate_at_time
        model.session_id = event.session_id
        model.is_resolved = event.is_resolved
        model.resolved_at = event.resolved_at
        model.compliance_outcome = event.compliance_outcome.value if event.compliance_outcome else None
        return model

    def _to_domain(self, model: InterventionEventModel) -> InterventionEvent:
        return InterventionEvent(
            id=model.id,
            timestamp=_utc(model.timestamp),
            trigger=InterventionTrigger(model.trigger),
            action=InterventionAction(model.action),
            message=model.message,
            dose_percent_at_time=model.dose_percent,
            eta_seconds_at_time=model.eta_seconds,
            burn_rate_at_time=model.burn_rate_per_hour,
            session_id=model.session_id,
            is_resolved=model.is_resolved,
            resolved_at=_utc(model.resolved_at),
            compliance_outcome=ComplianceOutcome(model.compliance_outcome) if model.compliance_outcome else None,
        )


class SqlAgentStateStore(AgentStateStore):
    STATE_ID = "agent_state"

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load(self) -> AgentState:
        with self.session_factory() as session:
            model = session.get(AgentStateModel, self.STATE_ID)
            if model is None:
                return AgentState()
            return AgentState(
                last_evaluated_at=_utc(model.last_evaluated_at),
                last_intervention_at=_utc(model.last_intervention_at),
                last_break_reminder_at=_utc(model.last_break_reminder_at),
                last_dose_percent=model.last_dose_percent,
                last_burn_rate_per_hour=model.last_burn_rate_per_hour,
                last_eta_seconds=model.last_eta_seconds,
                last_sync_at=_utc(model.last_sync_at),
            )

    def save(self, state: AgentState) -> None:
        with self.session_factory.begin() as session:
            model = session.get(AgentStateModel, self.STATE_ID)
            if model is None:
                model = AgentStateModel(id=self.STATE_ID)
                session.add(model)
            self._apply(model, state)

    @staticmethod
    def _apply(model: AgentStateModel, state: AgentState) -> None:
        model.last_evaluated_at = state.last_evaluated_at
        model.last_intervention_at = state.last_intervention_at
        model.last_break_reminder_at = state.last_break_reminder_at
        model.last_dose_percent = state.last_dose_percent
        model.last_burn_rate_per_hour = state.last_burn_rate_per_hour
        model.last_eta_seconds = state.last_eta_seconds
        model.last_sync_at = state.last_sync_at

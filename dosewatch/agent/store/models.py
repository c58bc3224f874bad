import uuid

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class InterventionEventModel(Base):
    __tablename__ = "agent_intervention_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    trigger = Column(String, nullable=False)
    action = Column(String, nullable=False)
    message = Column(String, nullable=True)

    dose_percent = Column(Float, nullable=False)
    eta_seconds = Column(Float, nullable=True)
    burn_rate_per_hour = Column(Float, nullable=True)
    session_id = Column(String, nullable=True)

    is_resolved = Column(Boolean, nullable=False, default=False, index=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    compliance_outcome = Column(String, nullable=True)


class ComplianceEventModel(Base):
    __tablename__ = "agent_compliance_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # One compliance event per intervention
    intervention_id = Column(Uuid, ForeignKey("agent_intervention_events.id"), nullable=False, unique=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    outcome = Column(String, nullable=False)
    response_seconds = Column(Float, nullable=True)
    volume_delta_db = Column(Float, nullable=True)
    stopped_listening = Column(Boolean, nullable=False, default=False)


class AgentStateModel(Base):
    __tablename__ = "agent_state"

    id = Column(String, primary_key=True, default="agent_state")
    last_evaluated_at = Column(DateTime(timezone=True), nullable=True)
    last_intervention_at = Column(DateTime(timezone=True), nullable=True)
    last_break_reminder_at = Column(DateTime(timezone=True), nullable=True)
    last_dose_percent = Column(Float, nullable=False, default=0.0)
    last_burn_rate_per_hour = Column(Float, nullable=True)
    last_eta_seconds = Column(Float, nullable=True)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)

from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import create_engine

from dosewatch.advisor.services.llm_advisor import LlmAdvisor
from dosewatch.agent.interfaces.advisor_port import AdvisorPort
from dosewatch.agent.interfaces.agent_event_store import AgentEventStore
from dosewatch.agent.interfaces.agent_state_store import AgentStateStore
from dosewatch.agent.interfaces.notification_port import NotificationPort
from dosewatch.agent.interfaces.settings_port import SettingsPort
from dosewatch.agent.interfaces.sync_port import SyncPort
from dosewatch.agent.services.agent_evaluation_loop import AgentEvaluationLoop, AgentLoopConfig
from dosewatch.agent.services.background_sync import BackgroundSyncScheduler
from dosewatch.agent.services.compliance_tracker import ComplianceTracker, ComplianceWindows
from dosewatch.agent.services.exposure_evaluation_pipeline import ExposureEvaluationPipeline
from dosewatch.agent.services.quiet_hours import QuietHoursPolicy
from dosewatch.agent.services.session_tracker import SessionTracker
from dosewatch.agent.store.in_memory_agent_state_store import InMemoryAgentStateStore
from dosewatch.agent.store.in_memory_event_store import InMemoryAgentEventStore
from dosewatch.agent.store.sql_event_store import (
    SqlAgentEventStore,
    SqlAgentStateStore,
    create_session_factory,
)
from dosewatch.config.settings import AgentConfig, config as default_config
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger
from dosewatch.core.time.system_time_source import SystemTimeSource
from dosewatch.core.time.time_source import TimeSource
from dosewatch.exposure.interfaces.sample_source import SampleSource


@dataclass
class AgentRuntime:
    pipeline: ExposureEvaluationPipeline
    loop: AgentEvaluationLoop
    compliance_tracker: ComplianceTracker
    event_store: AgentEventStore
    state_store: AgentStateStore
    sync_scheduler: Optional[BackgroundSyncScheduler] = None
    advisor: Optional[AdvisorPort] = None

    def close(self) -> None:
        if isinstance(self.advisor, LlmAdvisor):
            self.advisor.close()


def build_runtime(
        sample_source: SampleSource,
        settings_port: SettingsPort,
        notifications: NotificationPort,
        time_source: Optional[TimeSource] = None,
        sync_port: Optional[SyncPort] = None,
        advisor: Optional[AdvisorPort] = None,
        settings: Optional[AgentConfig] = None,
        structured_logger: Optional[StructuredAgentLogger] = None
) -> AgentRuntime:
    """
    Wires the evaluation pipeline from configuration.
    Uses the SQL stores when EVENT_STORE_DSN is set, in-memory stores otherwise.
    """
    time_source = time_source or SystemTimeSource()
    settings = settings or default_config
    structured_logger = structured_logger or StructuredAgentLogger()
    local_tz = ZoneInfo(settings.LOCAL_TIMEZONE)

    if settings.EVENT_STORE_DSN:
        session_factory = create_session_factory(create_engine(settings.EVENT_STORE_DSN, pool_pre_ping=True, future=True))
        event_store: AgentEventStore = SqlAgentEventStore(session_factory)
        state_store: AgentStateStore = SqlAgentStateStore(session_factory)
    else:
        event_store = InMemoryAgentEventStore()
        state_store = InMemoryAgentStateStore()

    if advisor is None:
        advisor = LlmAdvisor.from_config(settings)

    compliance_tracker = ComplianceTracker(
        event_store,
        ComplianceWindows(
            min_elapsed_seconds=settings.COMPLIANCE_MIN_ELAPSED_SECONDS,
            before_window_seconds=settings.COMPLIANCE_BEFORE_WINDOW_SECONDS,
            compliance_window_seconds=settings.COMPLIANCE_WINDOW_SECONDS,
            stopped_listening_after_seconds=settings.STOPPED_LISTENING_AFTER_SECONDS,
            volume_drop_threshold_db=settings.VOLUME_DROP_THRESHOLD_DB,
        ),
        structured_logger=structured_logger,
    )
    sync_scheduler = None
    if sync_port is not None:
        sync_scheduler = BackgroundSyncScheduler(sync_port, settings.SYNC_COOLDOWN_SECONDS, structured_logger)

    loop = AgentEvaluationLoop(
        time_source=time_source,
        state_store=state_store,
        event_store=event_store,
        notifications=notifications,
        settings_port=settings_port,
        compliance_tracker=compliance_tracker,
        session_tracker=SessionTracker(settings.SESSION_GAP_SECONDS),
        quiet_hours=QuietHoursPolicy(local_tz),
        advisor=advisor,
        sync_scheduler=sync_scheduler,
        config=AgentLoopConfig.from_settings(settings),
        structured_logger=structured_logger,
    )
    pipeline = ExposureEvaluationPipeline(
        time_source=time_source,
        sample_source=sample_source,
        settings_port=settings_port,
        loop=loop,
        burn_rate_window_seconds=settings.BURN_RATE_WINDOW_SECONDS,
        recency_seconds=settings.RECENT_SAMPLE_WINDOW_SECONDS,
        local_tz=local_tz,
        structured_logger=structured_logger,
    )
    return AgentRuntime(
        pipeline=pipeline,
        loop=loop,
        compliance_tracker=compliance_tracker,
        event_store=event_store,
        state_store=state_store,
        sync_scheduler=sync_scheduler,
        advisor=advisor,
    )

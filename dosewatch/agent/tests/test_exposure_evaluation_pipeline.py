import pytest
from datetime import datetime, timedelta, timezone

from dosewatch.agent.adapters.in_memory_settings_port import InMemorySettingsPort
from dosewatch.agent.adapters.recording_notification_port import RecordingNotificationPort
from dosewatch.agent.domain.compliance_event import ComplianceOutcome
from dosewatch.agent.domain.intervention_event import InterventionTrigger
from dosewatch.agent.domain.user_settings import UserSettings
from dosewatch.agent.services.agent_runtime import build_runtime
from dosewatch.agent.store.sql_event_store import SqlAgentEventStore
from dosewatch.config.settings import AgentConfig
from dosewatch.core.time.frozen_time_source import FrozenTimeSource
from dosewatch.core.time.system_time_source import SystemTimeSource
from dosewatch.exposure.domain.dose_model import DoseStandard
from dosewatch.exposure.domain.exposure_sample import ExposureSample
from dosewatch.exposure.domain.sample_batch_notice import SampleBatchNotice
from dosewatch.exposure.store.in_memory_sample_source import InMemorySampleSource
from dosewatch.insight.domain.insight import InsightSeverity

NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


# --- Helpers ---

def loud_samples(minutes: int = 40, level: float = 95.0):
    return [
        ExposureSample(NOW - timedelta(minutes=minutes - i), NOW - timedelta(minutes=minutes - i - 1), level)
        for i in range(minutes)
    ]


def create_runtime(settings: UserSettings = None, config: AgentConfig = None, samples=None):
    clock = FrozenTimeSource(NOW)
    source = InMemorySampleSource(loud_samples() if samples is None else samples)
    settings_port = InMemorySettingsPort(settings or UserSettings())
    notifications = RecordingNotificationPort()
    runtime = build_runtime(
        time_source=clock,
        sample_source=source,
        settings_port=settings_port,
        notifications=notifications,
        settings=config or AgentConfig(),
    )
    return runtime, notifications, clock


def notice(day=None, count: int = 5) -> SampleBatchNotice:
    return SampleBatchNotice(
        day=day or NOW.date(),
        window_start=NOW - timedelta(minutes=5),
        window_end=NOW,
        sample_count=count,
    )


# --- Tests ---

def test_loud_session_triggers_eta_warning():
    runtime, notifications, _ = create_runtime()
    outcome = runtime.pipeline.on_samples_ingested(notice())

    assert runtime.pipeline.last_insight.severity == InsightSeverity.DANGER
    assert outcome.intervention.trigger == InterventionTrigger.ETA_WARNING
    assert outcome.intervention.dose_percent_at_time == pytest.approx(84.0, abs=0.1)
    assert notifications.kinds() == ["eta_warning"]


def test_osha_standard_changes_the_dose():
    runtime, notifications, _ = create_runtime(UserSettings(dose_standard=DoseStandard.OSHA))
    outcome = runtime.pipeline.run_cycle()

    assert outcome.intervention.dose_percent_at_time == pytest.approx(16.67, abs=0.01)
    assert outcome.intervention.trigger == InterventionTrigger.VOLUME_ALERT
    assert notifications.sent[0].fields["level_db"] == 95.0


def test_batches_for_other_days_are_ignored():
    runtime, notifications, _ = create_runtime()
    assert runtime.pipeline.on_samples_ingested(notice(day=NOW.date() - timedelta(days=1))) is None
    assert runtime.pipeline.on_samples_ingested(notice(count=0)) is None
    assert notifications.sent == []


def test_no_samples_means_not_listening():
    runtime, notifications, _ = create_runtime(samples=[])
    outcome = runtime.pipeline.run_cycle()

    assert outcome.skip_reason is not None
    assert runtime.pipeline.last_insight.severity == InsightSeverity.INACTIVE
    assert notifications.sent == []


def test_runtime_uses_sql_store_when_configured(tmp_path):
    config = AgentConfig(EVENT_STORE_DSN=f"sqlite:///{tmp_path / 'events.db'}")
    runtime, _, _ = create_runtime(config=config)
    try:
        runtime.pipeline.run_cycle()
    finally:
        runtime.close()

    assert isinstance(runtime.event_store, SqlAgentEventStore)
    assert len(runtime.event_store.list_interventions()) == 1
    assert runtime.state_store.load().last_evaluated_at == NOW


def test_runtime_defaults_to_system_clock():
    runtime = build_runtime(
        sample_source=InMemorySampleSource(),
        settings_port=InMemorySettingsPort(),
        notifications=RecordingNotificationPort(),
        settings=AgentConfig(),
    )
    assert isinstance(runtime.loop.time_source, SystemTimeSource)
    assert runtime.pipeline.time_source is runtime.loop.time_source
    assert runtime.advisor is None


def test_compliance_spans_midnight():
    late = datetime(2026, 3, 2, 23, 55, tzinfo=timezone.utc)
    clock = FrozenTimeSource(late)
    source = InMemorySampleSource([
        ExposureSample(late - timedelta(minutes=15 - i), late - timedelta(minutes=14 - i), 92.0)
        for i in range(15)
    ])
    runtime = build_runtime(
        time_source=clock,
        sample_source=source,
        settings_port=InMemorySettingsPort(UserSettings(dose_standard=DoseStandard.OSHA)),
        notifications=RecordingNotificationPort(),
        settings=AgentConfig(),
    )
    first = runtime.pipeline.run_cycle()
    assert first.intervention is not None

    for i in range(12):
        start = late + timedelta(minutes=i)
        source.append(ExposureSample(start, start + timedelta(minutes=1), 70.0))
    clock.advance(timedelta(minutes=12))
    second = runtime.pipeline.run_cycle()

    assert [e.outcome for e in second.compliance_events] == [ComplianceOutcome.VOLUME_REDUCED]
    assert runtime.event_store.list_unresolved_interventions() == []


def test_compliance_reaches_back_to_old_interventions():
    runtime, _, clock = create_runtime(UserSettings(dose_standard=DoseStandard.OSHA))
    runtime.pipeline.run_cycle()
    clock.advance(timedelta(minutes=30))

    assert runtime.compliance_tracker.lookback_start(clock.now()) == NOW - timedelta(minutes=5)

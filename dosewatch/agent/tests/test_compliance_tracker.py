import pytest
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from dosewatch.agent.domain.compliance_event import ComplianceEvent, ComplianceOutcome
from dosewatch.agent.domain.intervention_event import (
    InterventionAction,
    InterventionEvent,
    InterventionTrigger,
)
from dosewatch.agent.services.compliance_tracker import ComplianceTracker
from dosewatch.agent.store.in_memory_event_store import InMemoryAgentEventStore
from dosewatch.core.domain.exceptions import InterventionAlreadyResolved
from dosewatch.exposure.domain.exposure_sample import ExposureSample

T0 = datetime(2026, 3, 2, 16, 0, tzinfo=timezone.utc)


# --- Helpers ---

def create_intervention(at: datetime = T0) -> InterventionEvent:
    return InterventionEvent(
        id=uuid4(),
        timestamp=at,
        trigger=InterventionTrigger.VOLUME_ALERT,
        action=InterventionAction.SUGGEST_VOLUME,
        dose_percent_at_time=42.0,
    )


def minute_samples(start_offset_min: int, count: int, level: float):
    return [
        ExposureSample(
            T0 + timedelta(minutes=start_offset_min + i),
            T0 + timedelta(minutes=start_offset_min + i + 1),
            level,
        )
        for i in range(count)
    ]


def create_tracker():
    store = InMemoryAgentEventStore()
    intervention = create_intervention()
    store.append_intervention(intervention)
    return ComplianceTracker(store), store, intervention


# --- Tests ---

def test_too_early_to_judge():
    tracker, store, _ = create_tracker()
    samples = minute_samples(-5, 5, 90)
    assert tracker.run(samples, T0 + timedelta(seconds=30)) == []
    assert len(store.list_unresolved_interventions()) == 1


def test_stopped_listening():
    tracker, store, intervention = create_tracker()
    samples = minute_samples(-5, 5, 90)
    events = tracker.run(samples, T0 + timedelta(minutes=6))

    assert len(events) == 1
    assert events[0].outcome == ComplianceOutcome.STOPPED_LISTENING
    assert events[0].stopped_listening is True
    assert events[0].intervention_id == intervention.id
    assert store.get_intervention(intervention.id).compliance_outcome == ComplianceOutcome.STOPPED_LISTENING


def test_silence_shorter_than_threshold_stays_pending():
    tracker, _, _ = create_tracker()
    samples = minute_samples(-5, 5, 90)
    assert tracker.run(samples, T0 + timedelta(minutes=4)) == []


def test_volume_reduced():
    tracker, _, _ = create_tracker()
    samples = minute_samples(-5, 5, 90) + minute_samples(0, 2, 84)
    events = tracker.run(samples, T0 + timedelta(minutes=2))

    assert len(events) == 1
    assert events[0].outcome == ComplianceOutcome.VOLUME_REDUCED
    assert events[0].volume_delta_db == pytest.approx(6.0)
    assert events[0].response_seconds == pytest.approx(120)


def test_small_drop_is_no_change_after_window():
    tracker, _, _ = create_tracker()
    samples = minute_samples(-5, 5, 90) + minute_samples(0, 11, 88)

    assert tracker.run(samples, T0 + timedelta(minutes=5)) == []
    events = tracker.run(samples, T0 + timedelta(minutes=11))
    assert [e.outcome for e in events] == [ComplianceOutcome.NO_CHANGE]


def test_resolved_at_most_once():
    tracker, store, intervention = create_tracker()
    samples = minute_samples(-5, 5, 90)
    tracker.run(samples, T0 + timedelta(minutes=6))
    assert tracker.run(samples, T0 + timedelta(minutes=20)) == []
    assert len(store.list_compliance_events()) == 1

    stored = store.get_intervention(intervention.id)
    with pytest.raises(InterventionAlreadyResolved):
        stored.resolve(ComplianceOutcome.NO_CHANGE, T0 + timedelta(minutes=21))


def test_summary_counts_outcomes():
    store = InMemoryAgentEventStore()
    tracker = ComplianceTracker(store)
    first = create_intervention(T0)
    second = create_intervention(T0 + timedelta(minutes=1))
    store.append_intervention(first)
    store.append_intervention(second)

    tracker.run(minute_samples(-5, 5, 90), T0 + timedelta(minutes=8))
    summary = tracker.summarize()

    assert summary.total == 2
    assert summary.stopped_listening == 2
    assert summary.heeded_rate == 1.0


def test_failed_resolution_leaves_intervention_pending():
    tracker, store, intervention = create_tracker()
    store.append_compliance(ComplianceEvent(uuid4(), intervention.id, T0, ComplianceOutcome.NO_CHANGE))

    with pytest.raises(ValueError):
        tracker.run(minute_samples(-5, 5, 90), T0 + timedelta(minutes=6))

    assert not store.get_intervention(intervention.id).is_resolved
    assert len(store.list_compliance_events()) == 1


def test_lookback_covers_oldest_pending_intervention():
    tracker, _, _ = create_tracker()
    assert tracker.lookback_start(T0 + timedelta(minutes=2)) == T0 - timedelta(minutes=13)
    assert tracker.lookback_start(T0 + timedelta(hours=2)) == T0 - timedelta(minutes=5)

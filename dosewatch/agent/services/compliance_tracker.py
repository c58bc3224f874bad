from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence
from uuid import UUID, uuid4

from dosewatch.agent.domain.compliance_event import ComplianceEvent, ComplianceOutcome, ComplianceSummary
from dosewatch.agent.domain.intervention_event import InterventionEvent
from dosewatch.agent.interfaces.agent_event_store import AgentEventStore
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger
from dosewatch.exposure.domain.exposure_sample import ExposureSample


@dataclass(frozen=True)
class ComplianceWindows:
    min_elapsed_seconds: float = 60.0
    before_window_seconds: float = 5 * 60.0
    compliance_window_seconds: float = 10 * 60.0
    stopped_listening_after_seconds: float = 5 * 60.0
    volume_drop_threshold_db: float = 3.0


@dataclass(frozen=True)
class ComplianceAssessment:
    outcome: ComplianceOutcome
    response_seconds: float
    volume_delta_db: Optional[float] = None


class ComplianceTracker:
    """
    Resolves pending interventions by comparing listening before and after them.
    """

    def __init__(
            self,
            event_store: AgentEventStore,
            windows: Optional[ComplianceWindows] = None,
            id_factory: Callable[[], UUID] = uuid4,
            structured_logger: Optional[StructuredAgentLogger] = None
    ):
        self.event_store = event_store
        self.windows = windows or ComplianceWindows()
        self.id_factory = id_factory
        self.structured_logger = structured_logger or StructuredAgentLogger()

    def run(self, samples: Sequence[ExposureSample], now: datetime) -> List[ComplianceEvent]:
        resolved: List[ComplianceEvent] = []
        for intervention in self.event_store.list_unresolved_interventions():
            assessment = self.assess(intervention, samples, now)
            if assessment is None:
                continue
            resolved.append(self._resolve(intervention, assessment, now))
        return resolved

    def assess(
            self,
            intervention: InterventionEvent,
            samples: Sequence[ExposureSample],
            now: datetime
    ) -> Optional[ComplianceAssessment]:
        elapsed = (now - intervention.timestamp).total_seconds()
        if elapsed < self.windows.min_elapsed_seconds:
            return None

        before_start = intervention.timestamp - timedelta(seconds=self.windows.before_window_seconds)
        after_end = min(now, intervention.timestamp + timedelta(seconds=self.windows.compliance_window_seconds))

        before = [s for s in samples if before_start <= s.end_time <= intervention.timestamp]
        after = [s for s in samples if intervention.timestamp <= s.start_time <= after_end]

        if not after and elapsed > self.windows.stopped_listening_after_seconds:
            return ComplianceAssessment(ComplianceOutcome.STOPPED_LISTENING, elapsed)

        before_avg = _average_level(before)
        after_avg = _average_level(after)
        if before_avg is not None and after_avg is not None:
            delta = before_avg - after_avg
            if delta >= self.windows.volume_drop_threshold_db:
                return ComplianceAssessment(ComplianceOutcome.VOLUME_REDUCED, elapsed, delta)

        if elapsed >= self.windows.compliance_window_seconds:
            return ComplianceAssessment(ComplianceOutcome.NO_CHANGE, elapsed)

        return None

    def lookback_start(self, now: datetime) -> datetime:
        """
        Earliest sample time the next run can need, across day boundaries.
        """
        start = now - timedelta(
            seconds=self.windows.compliance_window_seconds + self.windows.before_window_seconds
        )
        for intervention in self.event_store.list_unresolved_interventions():
            start = min(start, intervention.timestamp - timedelta(seconds=self.windows.before_window_seconds))
        return start

    def summarize(self, events: Optional[Sequence[ComplianceEvent]] = None) -> ComplianceSummary:
        if events is None:
            events = self.event_store.list_compliance_events()
        counts = {outcome: 0 for outcome in ComplianceOutcome}
        for event in events:
            counts[event.outcome] += 1
        return ComplianceSummary(
            total=len(events),
            stopped_listening=counts[ComplianceOutcome.STOPPED_LISTENING],
            volume_reduced=counts[ComplianceOutcome.VOLUME_REDUCED],
            no_change=counts[ComplianceOutcome.NO_CHANGE],
        )

    def _resolve(
            self,
            intervention: InterventionEvent,
            assessment: ComplianceAssessment,
            now: datetime
    ) -> ComplianceEvent:
        event = ComplianceEvent(
            id=self.id_factory(),
            intervention_id=intervention.id,
            timestamp=now,
            outcome=assessment.outcome,
            response_seconds=assessment.response_seconds,
            volume_delta_db=assessment.volume_delta_db,
            stopped_listening=assessment.outcome == ComplianceOutcome.STOPPED_LISTENING,
        )
        intervention.resolve(assessment.outcome, now)
        self.event_store.resolve_intervention(intervention, event)

        self.structured_logger.emit(
            "compliance_resolved",
            intervention_id=intervention.id,
            trigger=intervention.trigger.value,
            outcome=assessment.outcome.value,
            response_seconds=round(assessment.response_seconds, 1),
            volume_delta_db=assessment.volume_delta_db,
        )
        return event


def _average_level(samples: Sequence[ExposureSample]) -> Optional[float]:
    if not samples:
        return None
    return sum(s.level_db for s in samples) / len(samples)

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from dosewatch.agent.domain.advisor_context import AdvisorContext
from dosewatch.agent.domain.agent_decision import (
    AdjustSettingsDecision,
    AgentDecision,
    BreakDecision,
    NotifyDecision,
    SyncDecision,
)
from dosewatch.agent.domain.agent_state import AgentState
from dosewatch.agent.domain.evaluation import (
    DecisionSource,
    EvaluationInput,
    EvaluationOutcome,
    SkipReason,
)
from dosewatch.agent.domain.intervention_event import (
    InterventionAction,
    InterventionEvent,
    InterventionTrigger,
)
from dosewatch.agent.domain.listening_session import ListeningSession
from dosewatch.agent.interfaces.advisor_port import AdvisorPort
from dosewatch.agent.interfaces.agent_event_store import AgentEventStore
from dosewatch.agent.interfaces.agent_state_store import AgentStateStore
from dosewatch.agent.interfaces.notification_port import NotificationPort
from dosewatch.agent.interfaces.settings_port import SettingsPort
from dosewatch.agent.services.background_sync import BackgroundSyncScheduler
from dosewatch.agent.services.compliance_tracker import ComplianceTracker
from dosewatch.agent.services.quiet_hours import QuietHoursPolicy
from dosewatch.agent.services.session_tracker import SessionTracker
from dosewatch.config.settings import AgentConfig
from dosewatch.core.domain.exceptions import SettingOutOfRange
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger
from dosewatch.core.time.time_source import TimeSource


@dataclass(frozen=True)
class AgentLoopConfig:
    evaluation_cooldown_seconds: float = 60.0
    intervention_cooldown_seconds: float = 10 * 60.0
    recent_sample_window_seconds: float = 10 * 60.0
    eta_warning_seconds: float = 30 * 60.0

    @classmethod
    def from_settings(cls, settings: AgentConfig) -> "AgentLoopConfig":
        return cls(
            evaluation_cooldown_seconds=settings.EVALUATION_COOLDOWN_SECONDS,
            intervention_cooldown_seconds=settings.INTERVENTION_COOLDOWN_SECONDS,
            recent_sample_window_seconds=settings.RECENT_SAMPLE_WINDOW_SECONDS,
            eta_warning_seconds=settings.ETA_WARNING_SECONDS,
        )


class AgentEvaluationLoop:
    """
    Decides, once per caller-triggered cycle, whether to intervene and with which single action.

    Gate order: evaluation cooldown, quiet hours, listening guard, intervention cooldown.
    Past the gates the advisor is consulted first (when wired), then the background resync
    runs, then the built-in rules pick at most one action. The compliance pass runs on every
    cycle that clears the evaluation cooldown.

    Not thread-safe. Callers serialize cycles (see ExposureEvaluationPipeline).
    """

    def __init__(
            self,
            time_source: TimeSource,
            state_store: AgentStateStore,
            event_store: AgentEventStore,
            notifications: NotificationPort,
            settings_port: SettingsPort,
            compliance_tracker: ComplianceTracker,
            session_tracker: Optional[SessionTracker] = None,
            quiet_hours: Optional[QuietHoursPolicy] = None,
            advisor: Optional[AdvisorPort] = None,
            sync_scheduler: Optional[BackgroundSyncScheduler] = None,
            config: Optional[AgentLoopConfig] = None,
            id_factory: Callable[[], UUID] = uuid4,
            structured_logger: Optional[StructuredAgentLogger] = None
    ):
        self.time_source = time_source
        self.state_store = state_store
        self.event_store = event_store
        self.notifications = notifications
        self.settings_port = settings_port
        self.compliance_tracker = compliance_tracker
        self.session_tracker = session_tracker or SessionTracker()
        self.quiet_hours = quiet_hours or QuietHoursPolicy()
        self.advisor = advisor
        self.sync_scheduler = sync_scheduler
        self.config = config or AgentLoopConfig()
        self.id_factory = id_factory
        self.structured_logger = structured_logger or StructuredAgentLogger()

    def evaluate(self, inp: EvaluationInput) -> EvaluationOutcome:
        now = self.time_source.now()
        state = self.state_store.load()
        outcome = EvaluationOutcome(evaluated_at=now)

        # 1. Evaluation cooldown
        if _within(state.last_evaluated_at, now, self.config.evaluation_cooldown_seconds):
            outcome.skip_reason = SkipReason.EVALUATION_COOLDOWN
            self.structured_logger.emit("evaluation_skipped", reason=outcome.skip_reason.value)
            return outcome
        state.last_evaluated_at = now
        # Persist the stamp before any port call so a re-entrant cycle sees it
        self.state_store.save(state)

        # 2. Quiet hours
        if self.quiet_hours.suppresses_interventions(inp.settings, now):
            return self._skip(SkipReason.QUIET_HOURS, state, inp, outcome, now)

        # 3. Listening guard
        if not self._is_listening_on_headphones(inp, now):
            return self._skip(SkipReason.NOT_LISTENING, state, inp, outcome, now)

        # 4. Intervention cooldown
        if _within(state.last_intervention_at, now, self.config.intervention_cooldown_seconds):
            return self._skip(SkipReason.INTERVENTION_COOLDOWN, state, inp, outcome, now)

        session = self.session_tracker.current_session(inp.samples)

        # 5. Advisor
        handled = False
        if self.advisor is not None:
            decision = self._consult_advisor(self._advisor_context(inp, session, now))
            if decision is not None:
                outcome.advisor_decision = decision
                handled = self._apply_decision(decision, state, inp, session, outcome, now)
                if handled:
                    outcome.decision_source = DecisionSource.ADVISOR

        if not handled:
            # 6. Background resync
            if self.sync_scheduler is not None:
                outcome.sync_result = self.sync_scheduler.maybe_sync(state, now)

            # 7. Built-in rules
            if self._apply_rules(state, inp, session, outcome, now):
                outcome.decision_source = DecisionSource.RULES

        return self._finish(state, inp, outcome, now)

    # --- Gates ---

    def _is_listening_on_headphones(self, inp: EvaluationInput, now: datetime) -> bool:
        return (
            inp.insight.is_actively_listening
            and self.session_tracker.has_recent_sample(inp.samples, now, self.config.recent_sample_window_seconds)
            and inp.is_headphone_output
        )

    def _skip(
            self,
            reason: SkipReason,
            state: AgentState,
            inp: EvaluationInput,
            outcome: EvaluationOutcome,
            now: datetime
    ) -> EvaluationOutcome:
        outcome.skip_reason = reason
        self.structured_logger.emit("evaluation_skipped", reason=reason.value)
        return self._finish(state, inp, outcome, now)

    def _finish(
            self,
            state: AgentState,
            inp: EvaluationInput,
            outcome: EvaluationOutcome,
            now: datetime
    ) -> EvaluationOutcome:
        state.last_dose_percent = inp.dose.dose_percent
        state.last_burn_rate_per_hour = inp.insight.burn_rate_per_hour
        state.last_eta_seconds = inp.insight.eta_to_limit_seconds
        self.state_store.save(state)

        samples = inp.compliance_samples if inp.compliance_samples is not None else inp.samples
        try:
            outcome.compliance_events = self.compliance_tracker.run(samples, now)
        except Exception as exc:
            self.structured_logger.warn("compliance_failed", error=str(exc), error_type=type(exc).__name__)
        return outcome

    # --- Advisor ---

    def _advisor_context(
            self,
            inp: EvaluationInput,
            session: Optional[ListeningSession],
            now: datetime
    ) -> AdvisorContext:
        return AdvisorContext(
            dose_percent=inp.dose.dose_percent,
            burn_rate_per_hour=inp.insight.burn_rate_per_hour,
            eta_seconds=inp.insight.eta_to_limit_seconds,
            is_actively_listening=inp.insight.is_actively_listening,
            current_level_db=inp.current_level_db,
            session_minutes=session.minutes if session else 0,
            daily_exposure_limit_percent=inp.settings.daily_exposure_limit_percent,
            volume_alert_threshold_db=inp.settings.volume_alert_threshold_db,
            quiet_hours_active=self.quiet_hours.is_in_window(inp.settings, now),
        )

    def _consult_advisor(self, context: AdvisorContext) -> Optional[AgentDecision]:
        try:
            decision = self.advisor.decide(context)
        except Exception as exc:
            self.structured_logger.warn("advisor_fallback", reason="error", error=str(exc))
            return None
        if decision is None:
            self.structured_logger.emit("advisor_fallback", reason="no_decision")
        return decision

    def _apply_decision(
            self,
            decision: AgentDecision,
            state: AgentState,
            inp: EvaluationInput,
            session: Optional[ListeningSession],
            outcome: EvaluationOutcome,
            now: datetime
    ) -> bool:
        # Re-checked after the advisor call, which may straddle the start of quiet hours
        quiet_hours_active = self.quiet_hours.suppresses_interventions(inp.settings, self.time_source.now())
        message = decision.reason

        if isinstance(decision, NotifyDecision):
            if quiet_hours_active:
                return self._suppress(decision, outcome)
            if not decision.is_deliverable:
                return False
            if not self._deliver(self.notifications.send_agent_notification, decision.title, decision.body):
                return False
            self._record(InterventionTrigger.AI_NOTIFY, InterventionAction.NOTIFY,
                         message or "ai_notify", state, inp, session, outcome, now)
            return True

        if isinstance(decision, BreakDecision):
            if quiet_hours_active:
                return self._suppress(decision, outcome)
            break_minutes = decision.break_minutes or inp.settings.break_duration_minutes
            session_minutes = session.minutes if session else 0
            if not self._deliver(self.notifications.send_break_reminder, session_minutes, break_minutes):
                return False
            self._record(InterventionTrigger.AI_BREAK, InterventionAction.BREAK,
                         message or "ai_break", state, inp, session, outcome, now)
            return True

        if isinstance(decision, SyncDecision):
            if decision.trigger_sync is not True or self.sync_scheduler is None:
                return False
            result = self.sync_scheduler.maybe_sync(state, now)
            if result is None:
                return False
            outcome.sync_result = result
            self._record(InterventionTrigger.AI_SYNC, InterventionAction.SYNC,
                         message or "ai_sync", state, inp, session, outcome, now)
            return True

        if isinstance(decision, AdjustSettingsDecision):
            if not self._adjust_settings(decision, inp):
                return False
            self._record(InterventionTrigger.AI_ADJUST, InterventionAction.ADJUST_SETTINGS,
                         message or "ai_adjust", state, inp, session, outcome, now)
            return True

        return False

    def _suppress(self, decision: AgentDecision, outcome: EvaluationOutcome) -> bool:
        outcome.advisor_suppressed = True
        self.structured_logger.emit("advisor_suppressed", action=decision.action.value, reason="quiet_hours")
        return True

    def _adjust_settings(self, decision: AdjustSettingsDecision, inp: EvaluationInput) -> bool:
        changed = False
        try:
            if (decision.set_daily_limit is not None
                    and decision.set_daily_limit != inp.settings.daily_exposure_limit_percent):
                self.settings_port.set_daily_exposure_limit(decision.set_daily_limit)
                changed = True
            if (decision.set_volume_threshold_db is not None
                    and decision.set_volume_threshold_db != inp.settings.volume_alert_threshold_db):
                self.settings_port.set_volume_alert_threshold(decision.set_volume_threshold_db)
                changed = True
        except SettingOutOfRange as exc:
            self.structured_logger.warn("settings_adjust_rejected", setting=exc.name, value=exc.value)
        return changed

    # --- Rules ---

    def _apply_rules(
            self,
            state: AgentState,
            inp: EvaluationInput,
            session: Optional[ListeningSession],
            outcome: EvaluationOutcome,
            now: datetime
    ) -> bool:
        settings = inp.settings
        dose_percent = inp.dose.dose_percent
        eta = inp.insight.eta_to_limit_seconds

        # a. Daily limit reached
        if dose_percent >= settings.daily_exposure_limit_percent:
            if not self._deliver(self.notifications.send_limit_reached, dose_percent, inp.current_level_db):
                return False
            self._record(InterventionTrigger.LIMIT_REACHED, InterventionAction.NOTIFY_LIMIT,
                         "limit_reached", state, inp, session, outcome, now)
            return True

        # b. Limit is near at the current pace
        if eta is not None and eta <= self.config.eta_warning_seconds:
            if not self._deliver(self.notifications.send_eta_warning, dose_percent, eta):
                return False
            self._record(InterventionTrigger.ETA_WARNING, InterventionAction.NOTIFY_ETA,
                         "eta_warning", state, inp, session, outcome, now)
            return True

        # c. Long continuous session
        if (settings.break_reminders_enabled
                and session is not None
                and session.duration >= settings.break_interval_seconds
                and not _within(state.last_break_reminder_at, now, settings.break_interval_seconds)):
            if not self._deliver(self.notifications.send_break_reminder,
                                 session.minutes, settings.break_duration_minutes):
                return False
            self._record(InterventionTrigger.BREAK_INTERVAL, InterventionAction.NOTIFY_BREAK,
                         "break_reminder", state, inp, session, outcome, now)
            state.last_break_reminder_at = now
            return True

        # d. Loud right now
        if (settings.instant_volume_alerts_enabled
                and inp.current_level_db is not None
                and inp.current_level_db >= settings.volume_alert_threshold_db):
            if not self._deliver(self.notifications.send_volume_suggestion, inp.current_level_db, dose_percent):
                return False
            self._record(InterventionTrigger.VOLUME_ALERT, InterventionAction.SUGGEST_VOLUME,
                         "volume_alert", state, inp, session, outcome, now)
            return True

        return False

    # --- Recording ---

    def _deliver(self, send: Callable[..., Any], *args: Any) -> bool:
        try:
            send(*args)
        except Exception as exc:
            self.structured_logger.warn("notification_failed", target=getattr(send, "__name__", "send"), error=str(exc))
            return False
        return True

    def _record(
            self,
            trigger: InterventionTrigger,
            action: InterventionAction,
            message: str,
            state: AgentState,
            inp: EvaluationInput,
            session: Optional[ListeningSession],
            outcome: EvaluationOutcome,
            now: datetime
    ) -> InterventionEvent:
        event = InterventionEvent(
            id=self.id_factory(),
            timestamp=now,
            trigger=trigger,
            action=action,
            message=message,
            dose_percent_at_time=inp.dose.dose_percent,
            eta_seconds_at_time=inp.insight.eta_to_limit_seconds,
            burn_rate_at_time=inp.insight.burn_rate_per_hour,
            session_id=session.session_id if session else None,
        )
        # Cooldown starts at delivery, independent of the write
        state.last_intervention_at = now
        outcome.intervention = event
        try:
            self.event_store.append_intervention(event)
        except Exception as exc:
            self.structured_logger.warn(
                "intervention_store_failed",
                intervention_id=event.id,
                trigger=trigger.value,
                error=str(exc),
            )
            return event

        self.structured_logger.emit(
            "intervention_recorded",
            intervention_id=event.id,
            trigger=trigger.value,
            action=action.value,
            dose_percent=round(event.dose_percent_at_time, 1),
            session_id=event.session_id,
        )
        return event


def _within(since: Optional[datetime], now: datetime, seconds: float) -> bool:
    """True when `since` is set and less than `seconds` ago. Absent timestamps never block."""
    if since is None:
        return False
    return (now - since).total_seconds() < seconds

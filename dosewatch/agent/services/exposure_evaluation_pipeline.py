from datetime import timedelta, timezone, tzinfo
from threading import Lock
from typing import Optional

from dosewatch.agent.domain.evaluation import EvaluationInput, EvaluationOutcome
from dosewatch.agent.interfaces.settings_port import SettingsPort
from dosewatch.agent.services.agent_evaluation_loop import AgentEvaluationLoop
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger
from dosewatch.core.time.time_source import TimeSource
from dosewatch.exposure.domain.dose_model import DoseModel
from dosewatch.exposure.domain.sample_batch_notice import SampleBatchNotice
from dosewatch.exposure.interfaces.sample_source import SampleSource
from dosewatch.exposure.services.burn_rate_estimator import (
    DEFAULT_RECENCY_SECONDS,
    DEFAULT_WINDOW_SECONDS,
    BurnRateEstimator,
)
from dosewatch.exposure.services.dose_calculator import DoseCalculator
from dosewatch.insight.domain.insight import Insight
from dosewatch.insight.services.insight_classifier import InsightClassifier


class ExposureEvaluationPipeline:
    """
    Entry point for the ingestion collaborator.
    Computes dose, burn rate and insight for today, then runs one evaluation cycle.
    Cycles are serialized with a lock so agent state is never touched concurrently.
    """

    def __init__(
            self,
            time_source: TimeSource,
            sample_source: SampleSource,
            settings_port: SettingsPort,
            loop: AgentEvaluationLoop,
            classifier: Optional[InsightClassifier] = None,
            burn_rate_window_seconds: float = DEFAULT_WINDOW_SECONDS,
            recency_seconds: float = DEFAULT_RECENCY_SECONDS,
            local_tz: Optional[tzinfo] = None,
            structured_logger: Optional[StructuredAgentLogger] = None
    ):
        self.time_source = time_source
        self.sample_source = sample_source
        self.settings_port = settings_port
        self.loop = loop
        self.classifier = classifier or InsightClassifier()
        self.burn_rate_window_seconds = burn_rate_window_seconds
        self.recency_seconds = recency_seconds
        self.local_tz = local_tz or timezone.utc
        self.structured_logger = structured_logger or StructuredAgentLogger()
        self.last_insight: Optional[Insight] = None
        self._lock = Lock()

    def on_samples_ingested(self, notice: SampleBatchNotice) -> Optional[EvaluationOutcome]:
        today = self.time_source.now().astimezone(self.local_tz).date()
        if notice.day != today:
            self.structured_logger.emit("batch_ignored", reason="not_today", day=notice.day.isoformat())
            return None
        if notice.sample_count <= 0:
            self.structured_logger.emit("batch_ignored", reason="empty", day=notice.day.isoformat())
            return None
        return self.run_cycle(
            is_headphone_output=notice.is_headphone_output,
            current_level_db=notice.current_level_db,
        )

    def run_cycle(
            self,
            is_headphone_output: bool = True,
            current_level_db: Optional[float] = None
    ) -> EvaluationOutcome:
        with self._lock:
            now = self.time_source.now()
            settings = self.settings_port.snapshot()
            calculator = DoseCalculator(DoseModel.for_standard(settings.dose_standard))
            estimator = BurnRateEstimator(calculator, self.burn_rate_window_seconds, self.recency_seconds)

            day_samples = self.sample_source.samples_for_day(now.astimezone(self.local_tz).date())
            dose = calculator.calculate_daily_dose(day_samples)

            recent = self.sample_source.samples_between(
                now - timedelta(seconds=self.burn_rate_window_seconds), now
            )
            analysis = estimator.analyze(
                recent,
                now,
                current_dose_percent=dose.dose_percent,
                limit_percent=settings.daily_exposure_limit_percent,
                is_headphone_output=is_headphone_output,
            )
            insight = self.classifier.classify(dose, analysis)
            self.last_insight = insight

            if current_level_db is None and recent:
                current_level_db = recent[-1].level_db

            compliance_samples = None
            try:
                compliance_samples = self.sample_source.samples_between(
                    self.loop.compliance_tracker.lookback_start(now), now
                )
            except Exception as exc:
                self.structured_logger.warn(
                    "compliance_lookback_failed", error=str(exc), error_type=type(exc).__name__
                )

            return self.loop.evaluate(EvaluationInput(
                dose=dose,
                samples=day_samples,
                insight=insight,
                settings=settings,
                current_level_db=current_level_db,
                is_headphone_output=is_headphone_output,
                compliance_samples=compliance_samples,
            ))

from dosewatch.exposure.domain.burn_rate_analysis import BurnRateAnalysis
from dosewatch.exposure.domain.dose_result import DoseResult
from dosewatch.exposure.services.dose_calculator import DoseCalculator
from dosewatch.insight.domain.insight import Insight, InsightSeverity

DANGER_DOSE_PERCENT = 100.0
DANGER_PEAK_DB = 95.0
WARNING_DOSE_PERCENT = 70.0
WARNING_ETA_SECONDS = 30 * 60.0

INACTIVE_TEMPLATE = "Not listening right now. Today's dose is {dose:.0f}%."
DANGER_DOSE_TEMPLATE = "You've used {dose:.0f}% of today's safe listening budget. Give your ears a rest."
DANGER_PEAK_TEMPLATE = "Peaks of {peak:.0f} dB detected. Lower the volume now to protect your hearing."
WARNING_ETA_TEMPLATE = "At this volume you'll reach your daily limit in {eta}. Consider turning it down."
WARNING_DOSE_TEMPLATE = "You're at {dose:.0f}% of your daily limit. Lowering the volume will stretch what's left."
SAFE_TEMPLATE = "Listening at a safe pace: {dose:.0f}% used, about {rate:.1f}% per hour."


class InsightClassifier:
    """
    Maps dose and burn-rate figures onto the four-level severity taxonomy.
    Pure and deterministic, no external calls.
    """

    def classify(self, dose: DoseResult, analysis: BurnRateAnalysis) -> Insight:
        severity, message = self._severity_and_message(dose, analysis)
        return Insight(
            severity=severity,
            message=message,
            eta_to_limit_seconds=analysis.eta_to_limit_seconds,
            burn_rate_per_hour=analysis.burn_rate_per_hour,
            is_actively_listening=analysis.is_actively_listening,
        )

    def _severity_and_message(self, dose: DoseResult, analysis: BurnRateAnalysis):
        # 1. No recent activity
        if not analysis.is_actively_listening:
            return InsightSeverity.INACTIVE, INACTIVE_TEMPLATE.format(dose=dose.dose_percent)

        # 2. Danger
        if dose.dose_percent >= DANGER_DOSE_PERCENT:
            return InsightSeverity.DANGER, DANGER_DOSE_TEMPLATE.format(dose=dose.dose_percent)
        if dose.peak_level is not None and dose.peak_level >= DANGER_PEAK_DB:
            return InsightSeverity.DANGER, DANGER_PEAK_TEMPLATE.format(peak=dose.peak_level)

        # 3. Warning
        eta = analysis.eta_to_limit_seconds
        if eta is not None and eta <= WARNING_ETA_SECONDS:
            return InsightSeverity.WARNING, WARNING_ETA_TEMPLATE.format(eta=DoseCalculator.format_duration(eta))
        if dose.dose_percent >= WARNING_DOSE_PERCENT:
            return InsightSeverity.WARNING, WARNING_DOSE_TEMPLATE.format(dose=dose.dose_percent)

        # 4. Safe
        return InsightSeverity.SAFE, SAFE_TEMPLATE.format(
            dose=dose.dose_percent,
            rate=analysis.burn_rate_per_hour,
        )

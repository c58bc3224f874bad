import logging
from datetime import datetime, timedelta, timezone

from dosewatch.agent.adapters.callable_sync_port import CallableSyncPort
from dosewatch.agent.adapters.in_memory_settings_port import InMemorySettingsPort
from dosewatch.agent.adapters.logging_notification_port import LoggingNotificationPort
from dosewatch.agent.domain.user_settings import UserSettings
from dosewatch.agent.services.agent_runtime import build_runtime
from dosewatch.config.settings import config
from dosewatch.core.time.frozen_time_source import FrozenTimeSource
from dosewatch.exposure.domain.exposure_sample import ExposureSample
from dosewatch.exposure.domain.sample_batch_notice import SampleBatchNotice
from dosewatch.exposure.store.in_memory_sample_source import InMemorySampleSource

BATCH_MINUTES = 5


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print("Initializing DEV environment...")

    # 1. Infrastructure
    time_source = FrozenTimeSource(datetime.now(timezone.utc).replace(hour=9, minute=0, second=0, microsecond=0))
    samples = InMemorySampleSource()
    settings_port = InMemorySettingsPort(UserSettings(daily_exposure_limit_percent=90))
    notifications = LoggingNotificationPort()
    sync_port = CallableSyncPort(lambda: True, time_source)

    # 2. Runtime
    runtime = build_runtime(
        time_source=time_source,
        sample_source=samples,
        settings_port=settings_port,
        notifications=notifications,
        sync_port=sync_port,
        settings=config,
    )

    # 3. Scripted listening: loud for 80 minutes, then turned down
    print("Starting listening session (24 batches)...")
    try:
        for batch in range(1, 25):
            level = 94.0 if batch <= 16 else 82.0
            window_start = time_source.now()
            for minute in range(BATCH_MINUTES):
                start = window_start + timedelta(minutes=minute)
                samples.append(ExposureSample(start, start + timedelta(minutes=1), level))
            time_source.advance(timedelta(minutes=BATCH_MINUTES))

            outcome = runtime.pipeline.on_samples_ingested(SampleBatchNotice(
                day=window_start.date(),
                window_start=window_start,
                window_end=time_source.now(),
                sample_count=BATCH_MINUTES,
            ))

            status = "SILENT"
            if outcome is None:
                status = "IGNORED"
            elif outcome.skip_reason is not None:
                status = f"SKIPPED ({outcome.skip_reason.value})"
            elif outcome.intervention is not None:
                status = f"INTERVENTION: {outcome.intervention.trigger.value} (ID: {outcome.intervention.id})"

            insight = runtime.pipeline.last_insight
            print(f"Batch {batch} @ {level:.0f} dB: {status} | {insight.severity.value}: {insight.message}")
    finally:
        runtime.close()

    summary = runtime.compliance_tracker.summarize()
    print(f"Compliance: {summary.total} resolved, heeded rate {summary.heeded_rate:.0%}")
    print("Dev run complete.")


if __name__ == "__main__":
    main()

import time
from datetime import datetime
from typing import Optional

from dosewatch.agent.domain.agent_state import AgentState
from dosewatch.agent.domain.sync_status import SyncResult, SyncStatus
from dosewatch.agent.interfaces.sync_port import SyncPort
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger

DEFAULT_SYNC_COOLDOWN_SECONDS = 10 * 60.0


class BackgroundSyncScheduler:
    """
    Periodic incremental resync, independent of the intervention decision.
    Failures are recorded and logged, never raised.
    """

    def __init__(
            self,
            sync_port: SyncPort,
            cooldown_seconds: float = DEFAULT_SYNC_COOLDOWN_SECONDS,
            structured_logger: Optional[StructuredAgentLogger] = None
    ):
        self.sync_port = sync_port
        self.cooldown_seconds = cooldown_seconds
        self.structured_logger = structured_logger or StructuredAgentLogger()
        self.status = SyncStatus()

    def is_due(self, state: AgentState, now: datetime) -> bool:
        if state.last_sync_at is not None and self._elapsed(state.last_sync_at, now) < self.cooldown_seconds:
            return False
        last_success = self.sync_port.last_successful_sync_at()
        if last_success is not None and self._elapsed(last_success, now) < self.cooldown_seconds:
            return False
        return True

    def maybe_sync(self, state: AgentState, now: datetime) -> Optional[SyncResult]:
        if not self.is_due(state, now):
            return None

        started = time.monotonic()
        error = None
        try:
            ok = self.sync_port.trigger_incremental_sync()
        except Exception as exc:
            ok = False
            error = str(exc)
        duration = time.monotonic() - started

        result = SyncResult.SUCCESS if ok else SyncResult.ERROR
        state.last_sync_at = now
        self.status.last_attempt_at = now
        self.status.last_result = result
        self.status.last_duration_seconds = duration
        self.status.attempts += 1
        if not ok:
            self.status.failures += 1

        self.structured_logger.emit(
            "sync_attempted",
            result=result.value,
            duration_seconds=round(duration, 3),
            error=error,
        )
        return result

    @staticmethod
    def _elapsed(since: datetime, now: datetime) -> float:
        return (now - since).total_seconds()

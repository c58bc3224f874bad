from datetime import datetime
from typing import Callable, Optional

from dosewatch.agent.interfaces.sync_port import SyncPort
from dosewatch.core.time.time_source import TimeSource


class CallableSyncPort(SyncPort):
    """
    Adapts a plain sync callable to the SyncPort and remembers the last success.
    """

    def __init__(
            self,
            sync_fn: Callable[[], bool],
            time_source: TimeSource,
            last_success_at: Optional[datetime] = None
    ):
        self.sync_fn = sync_fn
        self.time_source = time_source
        self._last_success_at = last_success_at
        self.calls = 0

    def trigger_incremental_sync(self) -> bool:
        self.calls += 1
        ok = bool(self.sync_fn())
        if ok:
            self._last_success_at = self.time_source.now()
        return ok

    def last_successful_sync_at(self) -> Optional[datetime]:
        return self._last_success_at

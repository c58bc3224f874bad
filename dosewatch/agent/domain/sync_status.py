from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SyncResult(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class SyncStatus:
    """
    Observability record of the background resync.
    """
    last_attempt_at: Optional[datetime] = None
    last_result: Optional[SyncResult] = None
    last_duration_seconds: Optional[float] = None
    attempts: int = 0
    failures: int = 0

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional


class SyncPort(ABC):
    """
    Incremental resync against the health-data platform.
    """

    @abstractmethod
    def trigger_incremental_sync(self) -> bool:
        """Returns True on success. May raise; callers treat exceptions as failure."""
        pass

    @abstractmethod
    def last_successful_sync_at(self) -> Optional[datetime]:
        pass

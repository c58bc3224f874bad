from abc import ABC, abstractmethod
from datetime import datetime

class TimeSource(ABC):
    """
    Abstract source of time.
    Every cooldown and compliance window is measured against this clock.
    """
    @abstractmethod
    def now(self) -> datetime:
        pass

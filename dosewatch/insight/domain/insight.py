from dataclasses import dataclass
from enum import Enum
from typing import Optional


class InsightSeverity(Enum):
    INACTIVE = "inactive"
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class Insight:
    severity: InsightSeverity
    message: str
    eta_to_limit_seconds: Optional[float]
    burn_rate_per_hour: float
    is_actively_listening: bool

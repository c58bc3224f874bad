from dataclasses import dataclass
from enum import Enum


class DoseStandard(Enum):
    NIOSH = "niosh"
    OSHA = "osha"


@dataclass(frozen=True)
class DoseModel:
    """
    Exchange-rate exposure standard.
    Every exchange_rate_db increase above the reference halves the allowable time.
    """
    reference_level_db: float
    exchange_rate_db: float
    reference_duration_hours: float = 8.0

    @property
    def reference_duration_seconds(self) -> float:
        return self.reference_duration_hours * 3600.0

    @classmethod
    def niosh(cls) -> "DoseModel":
        return cls(reference_level_db=85.0, exchange_rate_db=3.0)

    @classmethod
    def osha(cls) -> "DoseModel":
        return cls(reference_level_db=90.0, exchange_rate_db=5.0)

    @classmethod
    def for_standard(cls, standard: DoseStandard) -> "DoseModel":
        if standard == DoseStandard.OSHA:
            return cls.osha()
        return cls.niosh()

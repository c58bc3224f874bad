from enum import Enum


class ExposureStatus(Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    HIGH = "high"
    DANGEROUS = "dangerous"

    @classmethod
    def from_dose(cls, dose_percent: float) -> "ExposureStatus":
        if dose_percent < 50:
            return cls.SAFE
        if dose_percent < 80:
            return cls.MODERATE
        if dose_percent < 100:
            return cls.HIGH
        return cls.DANGEROUS

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ExposureStatus.SAFE: "Your hearing exposure is within safe limits",
    ExposureStatus.MODERATE: "Approaching recommended daily limit",
    ExposureStatus.HIGH: "Near daily limit - consider reducing volume",
    ExposureStatus.DANGEROUS: "Exceeded safe daily limit - lower volume immediately",
}

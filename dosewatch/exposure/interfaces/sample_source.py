from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List

from dosewatch.exposure.domain.exposure_sample import ExposureSample


class SampleSource(ABC):
    """
    Read side of sample ingestion.
    Returned samples are deduplicated and sorted by start time.
    """

    @abstractmethod
    def samples_for_day(self, day: date) -> List[ExposureSample]:
        pass

    @abstractmethod
    def samples_between(self, start: datetime, end: datetime) -> List[ExposureSample]:
        pass

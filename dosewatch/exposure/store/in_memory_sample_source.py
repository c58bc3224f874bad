from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional

from dosewatch.exposure.domain.exposure_sample import ExposureSample
from dosewatch.exposure.interfaces.sample_source import SampleSource


class InMemorySampleSource(SampleSource):
    """
    In-memory sample buffer used by the dev runner and tests.
    Keeps samples sorted and drops exact duplicates.
    """

    def __init__(self, samples: Optional[Iterable[ExposureSample]] = None, day_tz: Optional[tzinfo] = None):
        self._samples: List[ExposureSample] = []
        self._day_tz = day_tz
        if samples:
            self.extend(samples)

    def append(self, sample: ExposureSample) -> None:
        self.extend([sample])

    def extend(self, samples: Iterable[ExposureSample]) -> None:
        known = set(self._samples)
        for sample in samples:
            if sample in known:
                continue
            known.add(sample)
            self._samples.append(sample)
        self._samples.sort(key=lambda s: (s.start_time, s.end_time))

    def samples_for_day(self, day: date) -> List[ExposureSample]:
        return [s for s in self._samples if self._local_day(s.start_time) == day]

    def samples_between(self, start: datetime, end: datetime) -> List[ExposureSample]:
        return [s for s in self._samples if s.end_time >= start and s.start_time <= end]

    def list_all(self) -> List[ExposureSample]:
        return list(self._samples)

    def _local_day(self, moment: datetime) -> date:
        if self._day_tz is not None:
            return moment.astimezone(self._day_tz).date()
        return moment.date()

import hashlib
from datetime import datetime
from typing import Optional, Sequence

from dosewatch.agent.domain.listening_session import ListeningSession
from dosewatch.exposure.domain.exposure_sample import ExposureSample

DEFAULT_SESSION_GAP_SECONDS = 5 * 60.0


class SessionTracker:
    """
    Groups the newest run of samples into the current listening session.
    """

    def __init__(self, gap_seconds: float = DEFAULT_SESSION_GAP_SECONDS):
        self.gap_seconds = gap_seconds

    def current_session(self, samples: Sequence[ExposureSample]) -> Optional[ListeningSession]:
        if not samples:
            return None
        ordered = sorted(samples, key=lambda s: (s.start_time, s.end_time))
        last = ordered[-1]
        first_index = len(ordered) - 1

        for index in range(len(ordered) - 2, -1, -1):
            gap = (ordered[first_index].start_time - ordered[index].end_time).total_seconds()
            if gap > self.gap_seconds:
                break
            first_index = index

        first = ordered[first_index]
        return ListeningSession(
            start_time=first.start_time,
            end_time=last.end_time,
            session_id=self.session_key(first),
            sample_count=len(ordered) - first_index,
        )

    @staticmethod
    def session_key(first_sample: ExposureSample) -> str:
        """
        Stable key derived from the session's first sample.
        Independent of batch order and of later samples joining the session.
        """
        raw = "|".join([
            first_sample.start_time.isoformat(),
            first_sample.end_time.isoformat(),
            f"{first_sample.level_db:.3f}",
        ])
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]

    @staticmethod
    def has_recent_sample(samples: Sequence[ExposureSample], now: datetime, recency_seconds: float) -> bool:
        if not samples:
            return False
        newest_end = max(s.end_time for s in samples)
        return (now - newest_end).total_seconds() <= recency_seconds

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class SampleBatchNotice:
    """
    Sent by the ingestion collaborator after new samples were stored.
    Carries the affected day and time span so the pipeline can decide whether to re-evaluate.
    """
    day: date
    window_start: datetime
    window_end: datetime
    sample_count: int
    is_headphone_output: bool = True
    current_level_db: Optional[float] = None

import pytest
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from dosewatch.core.time.frozen_time_source import FrozenTimeSource


def test_start_is_normalized_to_utc():
    clock = FrozenTimeSource(datetime(2026, 3, 2, 10, 0, tzinfo=ZoneInfo("Europe/Berlin")))
    assert clock.now() == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    assert clock.now().tzinfo == timezone.utc


def test_naive_start_is_rejected():
    with pytest.raises(ValueError):
        FrozenTimeSource(datetime(2026, 3, 2, 10, 0))


def test_clock_only_moves_forward():
    clock = FrozenTimeSource(datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc))
    clock.advance_seconds(90)
    assert clock.now() == datetime(2026, 3, 2, 10, 1, 30, tzinfo=timezone.utc)

    with pytest.raises(ValueError):
        clock.advance(timedelta(seconds=-1))

import pytest
from datetime import datetime, timedelta, timezone

from dosewatch.exposure.domain.dose_model import DoseModel, DoseStandard
from dosewatch.exposure.domain.exposure_sample import ExposureSample
from dosewatch.exposure.domain.exposure_status import ExposureStatus
from dosewatch.exposure.services.dose_calculator import (
    MAX_ALLOWABLE_SECONDS,
    MIN_ALLOWABLE_SECONDS,
    DoseCalculator,
)

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


# --- Helpers ---

def sample(offset_minutes: float, minutes: float, level: float) -> ExposureSample:
    start = T0 + timedelta(minutes=offset_minutes)
    return ExposureSample(start, start + timedelta(minutes=minutes), level)


# --- Tests ---

def test_allowable_time_niosh_reference_and_exchange():
    calc = DoseCalculator()
    assert calc.allowable_time(85) == pytest.approx(8 * 3600)
    assert calc.allowable_time(88) == pytest.approx(4 * 3600)
    assert calc.allowable_time(100) == pytest.approx(15 * 60)


def test_allowable_time_osha_preset():
    calc = DoseCalculator(DoseModel.for_standard(DoseStandard.OSHA))
    assert calc.allowable_time(90) == pytest.approx(8 * 3600)
    assert calc.allowable_time(95) == pytest.approx(4 * 3600)


def test_allowable_time_is_clamped():
    calc = DoseCalculator()
    assert calc.allowable_time(200) == MIN_ALLOWABLE_SECONDS
    assert calc.allowable_time(20) == MAX_ALLOWABLE_SECONDS


def test_eight_hours_at_reference_is_full_dose():
    calc = DoseCalculator()
    result = calc.calculate_daily_dose([sample(0, 8 * 60, 85)])
    assert result.dose_percent == pytest.approx(100.0)
    assert result.total_exposure_seconds == pytest.approx(8 * 3600)
    assert result.status == ExposureStatus.DANGEROUS


def test_mixed_levels_accumulate():
    calc = DoseCalculator()
    result = calc.calculate_daily_dose([
        sample(0, 120, 85),
        sample(120, 120, 88),
    ])
    assert result.dose_percent == pytest.approx(75.0)
    assert result.average_level == pytest.approx(86.5)
    assert result.peak_level == 88
    assert result.time_above_85db == pytest.approx(4 * 3600)
    assert result.time_above_90db == 0


def test_dose_is_additive_over_sample_splits():
    calc = DoseCalculator()
    whole = calc.calculate_daily_dose([sample(0, 60, 91)])
    split = calc.calculate_daily_dose([sample(0, 20, 91), sample(20, 40, 91)])
    assert whole.dose_percent == pytest.approx(split.dose_percent)


def test_empty_and_degenerate_samples_contribute_nothing():
    calc = DoseCalculator()
    assert calc.calculate_daily_dose([]).dose_percent == 0
    assert calc.calculate_daily_dose([]).peak_level is None

    result = calc.calculate_daily_dose([sample(0, 0, 95), sample(10, 10, 0)])
    assert result.dose_percent == 0
    assert result.total_exposure_seconds == 0
    assert result.average_level is None


def test_remaining_safe_time():
    calc = DoseCalculator()
    assert calc.remaining_safe_time(50, 85) == pytest.approx(4 * 3600)
    assert calc.remaining_safe_time(120, 85) == 0


def test_safe_level_for_remaining_time():
    calc = DoseCalculator()
    # Half the budget left over four hours is exactly the reference level.
    assert calc.safe_level_for_remaining_time(50, 4 * 3600) == pytest.approx(85.0)
    assert calc.safe_level_for_remaining_time(75, 1 * 3600) == pytest.approx(88.0)
    assert calc.safe_level_for_remaining_time(100, 3600) is None
    assert calc.safe_level_for_remaining_time(40, 0) is None


@pytest.mark.parametrize("seconds,expected", [
    (0, "< 1 min"),
    (59, "< 1 min"),
    (25 * 60, "25 min"),
    (3600 + 5 * 60, "1h 5m"),
])
def test_format_duration(seconds, expected):
    assert DoseCalculator.format_duration(seconds) == expected

from datetime import date, time

import pytest

from hr_timekeeping.attendance.time_ledger import (
    BreakPolicy,
    classify_punctuality,
    compute_overtime_minutes,
    compute_worked_minutes,
)
from hr_timekeeping.core.exceptions import InvalidTimeRange, ValidationError
from hr_timekeeping.schedules.model import DayHours, WorkSchedule

WEEKDAY = DayHours(time(9, 0), time(18, 0))


def _schedule(**kwargs) -> WorkSchedule:
    defaults = dict(
        schedule_id=1,
        name="Standard",
        days=(WEEKDAY,) * 5 + (None, None),
        break_start=time(13, 0),
        break_end=time(14, 0),
    )
    defaults.update(kwargs)
    return WorkSchedule(**defaults)


def test_full_day_deducts_break():
    assert compute_worked_minutes(time(9, 0), time(18, 0), _schedule()) == 480


def test_short_day_below_threshold_keeps_break():
    assert compute_worked_minutes(time(9, 0), time(11, 0), _schedule()) == 120


def test_exactly_threshold_does_not_deduct():
    assert compute_worked_minutes(time(9, 0), time(13, 0), _schedule()) == 240


def test_deduction_disabled():
    policy = BreakPolicy(enabled=False)
    assert compute_worked_minutes(time(9, 0), time(18, 0), _schedule(), policy=policy) == 540


def test_missing_time_returns_none():
    assert compute_worked_minutes(None, time(18, 0), _schedule()) is None
    assert compute_worked_minutes(time(9, 0), None, _schedule()) is None


@pytest.mark.parametrize("check_out", [time(9, 0), time(8, 59)])
def test_check_out_not_after_check_in_fails(check_out):
    with pytest.raises(InvalidTimeRange):
        compute_worked_minutes(time(9, 0), check_out, _schedule())


def test_invalid_range_is_a_validation_error():
    assert issubclass(InvalidTimeRange, ValidationError)


def test_monotonic_and_never_negative():
    schedule = _schedule(break_start=time(12, 0), break_end=time(16, 0))
    previous = -1
    start = time(8, 0)
    for minutes in range(1, 15 * 60, 7):
        end = time((8 * 60 + minutes) // 60, (8 * 60 + minutes) % 60)
        worked = compute_worked_minutes(start, end, schedule)
        assert worked >= 0
        assert worked >= previous
        previous = worked


def test_punctuality_within_tolerance():
    p = classify_punctuality(time(9, 15), time(17, 45), _schedule(), date(2025, 1, 6))
    assert not p.late
    assert not p.early_leave


def test_punctuality_late_and_early():
    p = classify_punctuality(time(9, 16), time(17, 44), _schedule(), date(2025, 1, 6))
    assert p.late and p.late_minutes == 16
    assert p.early_leave and p.early_leave_minutes == 16


def test_punctuality_on_non_working_day_is_neutral():
    p = classify_punctuality(time(11, 0), time(12, 0), _schedule(), date(2025, 1, 11))
    assert not p.late and not p.early_leave


def test_overtime_capped_by_approved_hours():
    assert compute_overtime_minutes(time(21, 0), time(18, 0), approved_hours=2) == 120
    assert compute_overtime_minutes(time(19, 0), time(18, 0), approved_hours=2) == 60
    assert compute_overtime_minutes(time(21, 0), time(18, 0), approved_hours=None) == 0


def test_deduction_never_drops_below_threshold():
    assert compute_worked_minutes(time(9, 0), time(13, 1), _schedule()) == 240
    assert compute_worked_minutes(time(9, 0), time(14, 0), _schedule()) == 240
    assert compute_worked_minutes(time(9, 0), time(14, 1), _schedule()) == 241


def test_half_hour_past_threshold_is_not_penalised():
    # A full break deduction would give 210 and drop below a 09:00-13:00 day.
    assert compute_worked_minutes(time(9, 0), time(13, 30), _schedule()) == 240
    assert compute_worked_minutes(time(9, 0), time(13, 30), _schedule(), policy=BreakPolicy(enabled=False)) == 270

from datetime import date, time

from hr_timekeeping.attendance.anomalies import AnomalyDetector
from hr_timekeeping.attendance.model import DayContext
from hr_timekeeping.core.enums import AnomalyType, AttendanceStatus
from hr_timekeeping.schedules.model import DayHours, WorkSchedule

MONDAY = date(2025, 1, 6)
SATURDAY = date(2025, 1, 11)

SCHEDULE = WorkSchedule(
    schedule_id=1,
    name="Standard",
    days=(DayHours(time(9, 0), time(18, 0)),) * 5 + (None, None),
    break_start=time(13, 0),
    break_end=time(14, 0),
)


def _detect(**kwargs):
    args = dict(
        work_date=MONDAY,
        check_in=time(9, 0),
        check_out=time(18, 0),
        status=AttendanceStatus.PRESENT,
        worked_minutes=480,
        schedule=SCHEDULE,
    )
    args.update(kwargs)
    return AnomalyDetector(max_daily_worked_minutes=720).detect(**args)


def test_clean_day_has_no_anomaly():
    assert _detect() is None


def test_missing_check_in_wins_over_everything():
    assert _detect(check_in=None, check_out=None, worked_minutes=None, work_date=SATURDAY) == AnomalyType.MISSING_CHECK_IN


def test_missing_check_out():
    assert _detect(check_out=None, worked_minutes=None) == AnomalyType.MISSING_CHECK_OUT


def test_open_day_does_not_report_missing_check_out():
    assert _detect(check_out=None, worked_minutes=None, open_day=True) is None
    assert _detect(check_in=None, check_out=None, worked_minutes=None, open_day=True) == AnomalyType.MISSING_CHECK_IN


def test_absent_without_times_is_not_missing_check_in():
    assert _detect(check_in=None, check_out=None, worked_minutes=None, status=AttendanceStatus.ABSENT) is None


def test_excessive_hours_before_punctuality():
    assert _detect(check_in=time(6, 0), check_out=time(20, 0), worked_minutes=780) == AnomalyType.EXCESSIVE_HOURS


def test_late_without_status_only_when_present():
    assert _detect(check_in=time(9, 40), worked_minutes=440) == AnomalyType.LATE_WITHOUT_STATUS
    assert _detect(check_in=time(9, 40), worked_minutes=440, status=AttendanceStatus.LATE) is None


def test_early_departure_with_present_status():
    assert _detect(check_out=time(17, 0), worked_minutes=420) == AnomalyType.EARLY_DEPARTURE


def test_weekend_work_unplanned():
    assert _detect(work_date=SATURDAY, status=AttendanceStatus.WEEKEND) == AnomalyType.WEEKEND_WORK_UNPLANNED


def test_weekend_without_schedule_uses_saturday_sunday():
    assert _detect(work_date=SATURDAY, schedule=None, status=AttendanceStatus.WEEKEND) == AnomalyType.WEEKEND_WORK_UNPLANNED
    assert _detect(work_date=MONDAY, schedule=None) is None


def test_weekend_with_recovery_context_is_planned():
    ctx = DayContext(recovery_period_name="Bridge", recovery_is_day_off=False)
    assert _detect(work_date=SATURDAY, status=AttendanceStatus.RECOVERY_UNPAID, context=ctx) is None


def test_weekend_without_presence_is_not_flagged():
    assert _detect(work_date=SATURDAY, check_in=None, check_out=None, worked_minutes=None, status=AttendanceStatus.WEEKEND) is None

"""Worked-time arithmetic shared by every attendance operation.

All functions are pure: same inputs, same outputs, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import minutes_between
from ..core import constants
from ..core.exceptions import InvalidTimeRange
from ..schedules.model import WorkSchedule
from .model import Punctuality


@dataclass(frozen=True)
class BreakPolicy:
    enabled: bool = True
    threshold_minutes: int = constants.DEFAULT_BREAK_DEDUCTION_THRESHOLD_MINUTES


def _elapsed_minutes(start: time, end: time) -> int:
    anchor = date(2000, 1, 1)
    return int((datetime.combine(anchor, end) - datetime.combine(anchor, start)).total_seconds() // 60)


def validate_time_range(check_in: Optional[time], check_out: Optional[time]) -> None:
    if check_in is not None and check_out is not None and check_out <= check_in:
        raise InvalidTimeRange("Check-out must be after check-in")


def compute_worked_minutes(
    check_in: Optional[time],
    check_out: Optional[time],
    schedule: Optional[WorkSchedule],
    *,
    policy: BreakPolicy = BreakPolicy(),
) -> Optional[int]:
    """Minutes between check-in and check-out, minus the scheduled break.

    The break is only deducted when deduction is enabled and the raw duration
    exceeds the policy threshold, and never takes the total below that
    threshold. Returns None when either time is missing.
    """

    validate_time_range(check_in, check_out)
    if check_in is None or check_out is None:
        return None

    minutes = _elapsed_minutes(check_in, check_out)
    if policy.enabled and schedule is not None and minutes > policy.threshold_minutes:
        # Partial deduction keeps worked minutes monotonic in check-out:
        # 09:00-13:30 with a 60 min break and 240 min threshold gives 240, not 210.
        minutes -= min(schedule.break_minutes, minutes - policy.threshold_minutes)
    return max(minutes, 0)


def classify_punctuality(
    check_in: Optional[time],
    check_out: Optional[time],
    schedule: Optional[WorkSchedule],
    work_date: date,
) -> Punctuality:
    """Late / early-leave flags against the schedule's hours for ``work_date``."""

    if schedule is None:
        return Punctuality()
    hours = schedule.hours_for(work_date)
    if hours is None:
        return Punctuality()

    late_minutes = 0
    if check_in is not None:
        diff = minutes_between(hours.start, check_in)
        if diff > schedule.late_tolerance_minutes:
            late_minutes = diff

    early_minutes = 0
    if check_out is not None:
        diff = minutes_between(check_out, hours.end)
        if diff > schedule.early_leave_tolerance_minutes:
            early_minutes = diff

    return Punctuality(
        late=late_minutes > 0,
        early_leave=early_minutes > 0,
        late_minutes=late_minutes,
        early_leave_minutes=early_minutes,
    )


def compute_overtime_minutes(
    check_out: Optional[time],
    scheduled_end: Optional[time],
    approved_hours: Optional[Decimal],
) -> int:
    """Minutes worked past scheduled end, capped by the approved overtime."""

    if check_out is None or scheduled_end is None or not approved_hours:
        return 0
    extra = minutes_between(scheduled_end, check_out)
    if extra <= 0:
        return 0
    cap = int(Decimal(approved_hours) * 60)
    return min(extra, cap)

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Optional, Tuple

from ..common.datetime_utils import minutes_between

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class DayHours:
    start: time
    end: time

    @property
    def minutes(self) -> int:
        return minutes_between(self.start, self.end)


def _no_days() -> Tuple[Optional[DayHours], ...]:
    return (None,) * 7


@dataclass(frozen=True)
class WorkSchedule:
    """Weekly working hours; ``days`` is indexed by ``date.weekday()``.

    A ``None`` entry is a non-working day.
    """

    schedule_id: int
    name: str
    days: Tuple[Optional[DayHours], ...] = field(default_factory=_no_days)
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    late_tolerance_minutes: int = 15
    early_leave_tolerance_minutes: int = 15
    min_hours_for_half_day: Decimal = Decimal("4")
    is_default: bool = False
    is_active: bool = False

    def hours_for(self, work_date: date) -> Optional[DayHours]:
        return self.days[work_date.weekday()]

    def is_working_day(self, work_date: date) -> bool:
        return self.hours_for(work_date) is not None

    @property
    def break_minutes(self) -> int:
        if self.break_start is None or self.break_end is None:
            return 0
        return max(minutes_between(self.break_start, self.break_end), 0)

    def scheduled_net_minutes(self, work_date: date) -> Optional[int]:
        hours = self.hours_for(work_date)
        if hours is None:
            return None
        return max(hours.minutes - self.break_minutes, 0)

from __future__ import annotations

from dataclasses import dataclass

from .strategies.base import DayInput, DayStatusStrategy
from .strategies.special_day_strategy import (
    AbsentStrategy,
    HolidayStrategy,
    LeaveStrategy,
    RecoveryOffStrategy,
    WeekendStrategy,
)
from .strategies.worked_day_strategy import WorkedDayStrategy


def _is_non_working_day(day: DayInput) -> bool:
    if day.schedule is not None:
        return not day.schedule.is_working_day(day.work_date)
    return day.work_date.weekday() >= 5


@dataclass
class DayStatusStrategyFactory:
    """Factory Pattern: pick the strategy by calendar precedence.

    Recovery day off, then holiday, then approved leave, then weekend, then
    absence; anything else is a worked day.
    """

    def for_day(self, day: DayInput) -> DayStatusStrategy:
        ctx = day.context
        if ctx.has_recovery and ctx.recovery_is_day_off:
            return RecoveryOffStrategy()
        if ctx.holiday_name and not ctx.has_recovery:
            return HolidayStrategy()
        if ctx.leave_type_code or ctx.leave_type_name:
            return LeaveStrategy()
        if _is_non_working_day(day) and not ctx.has_recovery:
            return WeekendStrategy()
        if day.check_in is None:
            return AbsentStrategy()
        return WorkedDayStrategy()

from __future__ import annotations

from ...core import constants
from ...core.enums import AttendanceStatus
from ...core.settings import EngineSettings
from .base import DayInput, DayStatusStrategy, StatusDecision

_LEAVE_CODE_STATUS = {
    "sick": AttendanceStatus.SICK,
    "maladie": AttendanceStatus.SICK,
    "mission": AttendanceStatus.MISSION,
    "training": AttendanceStatus.TRAINING,
    "formation": AttendanceStatus.TRAINING,
}


class RecoveryOffStrategy(DayStatusStrategy):
    """Day given off inside a recovery period; the scheduled hours become debt."""

    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        hours = constants.DEFAULT_SCHEDULED_HOURS
        if day.schedule is not None:
            net = day.schedule.scheduled_net_minutes(day.work_date)
            if net is not None:
                hours = round(net / 60)
        return StatusDecision(
            status=AttendanceStatus.RECOVERY_OFF,
            note=f"Day off: {day.context.recovery_period_name} - {hours}h to recover",
            hours_to_recover=hours,
        )


class HolidayStrategy(DayStatusStrategy):
    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HOLIDAY, note=f"Public holiday: {day.context.holiday_name}")


class LeaveStrategy(DayStatusStrategy):
    """Approved leave; the leave type code picks sick/mission/training."""

    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        code = (day.context.leave_type_code or "").lower()
        status = _LEAVE_CODE_STATUS.get(code, AttendanceStatus.LEAVE)
        return StatusDecision(status=status, note=f"Leave: {day.context.leave_type_name or code}")


class WeekendStrategy(DayStatusStrategy):
    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.WEEKEND)


class AbsentStrategy(DayStatusStrategy):
    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT)

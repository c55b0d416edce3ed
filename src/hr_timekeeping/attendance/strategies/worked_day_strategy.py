from __future__ import annotations

from decimal import Decimal

from ...core.enums import AttendanceStatus
from ...core.settings import EngineSettings
from ..time_ledger import BreakPolicy, classify_punctuality, compute_overtime_minutes, compute_worked_minutes
from .base import DayInput, DayStatusStrategy, StatusDecision


class WorkedDayStrategy(DayStatusStrategy):
    """Employee clocked in: status comes from punctuality and time worked."""

    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        punctuality = classify_punctuality(day.check_in, day.check_out, day.schedule, day.work_date)
        hours = day.schedule.hours_for(day.work_date) if day.schedule else None
        overtime = compute_overtime_minutes(
            day.check_out,
            hours.end if hours else None,
            day.context.approved_overtime_hours,
        )

        if punctuality.late and punctuality.early_leave:
            status = AttendanceStatus.PARTIAL
        elif punctuality.late:
            status = AttendanceStatus.LATE
        elif punctuality.early_leave:
            status = AttendanceStatus.EARLY_LEAVE
        else:
            status = self._status_from_time_worked(day, settings)

        note = None
        if day.context.has_recovery:
            # Working recovery day: hours are repaid, not paid.
            status = AttendanceStatus.RECOVERY_UNPAID
            note = f"Recovery: {day.context.recovery_period_name}"

        return StatusDecision(
            status=status,
            note=note,
            late_minutes=punctuality.late_minutes,
            early_leave_minutes=punctuality.early_leave_minutes,
            overtime_minutes=overtime,
        )

    @staticmethod
    def _status_from_time_worked(day: DayInput, settings: EngineSettings) -> AttendanceStatus:
        if day.schedule is None or day.check_out is None:
            return AttendanceStatus.PRESENT
        scheduled = day.schedule.scheduled_net_minutes(day.work_date)
        if not scheduled:
            return AttendanceStatus.PRESENT

        worked = compute_worked_minutes(
            day.check_in,
            day.check_out,
            day.schedule,
            policy=BreakPolicy(settings.break_deduction_enabled, settings.break_deduction_threshold_minutes),
        ) or 0
        if worked >= settings.present_ratio * scheduled:
            return AttendanceStatus.PRESENT
        if worked >= day.schedule.min_hours_for_half_day * Decimal(60):
            return AttendanceStatus.HALF_DAY
        return AttendanceStatus.PARTIAL

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ..core import constants
from ..core.enums import PRESENCE_STATUSES, AnomalyType, AttendanceStatus
from ..schedules.model import WorkSchedule
from .model import DayContext
from .time_ledger import classify_punctuality

_PLANNED_STATUSES = frozenset(
    {
        AttendanceStatus.HOLIDAY,
        AttendanceStatus.RECOVERY_OFF,
        AttendanceStatus.RECOVERY_PAID,
        AttendanceStatus.RECOVERY_UNPAID,
    }
)


@dataclass(frozen=True)
class AnomalyDetector:
    """Flags attendance values that break a presence or time-consistency rule.

    Rules are evaluated in a fixed order and only the first match is
    reported, so a record carries at most one anomaly type.
    """

    max_daily_worked_minutes: int = constants.DEFAULT_MAX_DAILY_WORKED_MINUTES

    def detect(
        self,
        *,
        work_date: date,
        check_in: Optional[time],
        check_out: Optional[time],
        status: AttendanceStatus,
        worked_minutes: Optional[int],
        schedule: Optional[WorkSchedule],
        context: DayContext = DayContext(),
        open_day: bool = False,
    ) -> Optional[AnomalyType]:
        """First broken rule, or None.

        With ``open_day`` the employee may still clock out, so a missing
        check-out is not reported yet.
        """

        expects_presence = status in PRESENCE_STATUSES
        if expects_presence and check_in is None:
            return AnomalyType.MISSING_CHECK_IN
        if expects_presence and check_out is None and not open_day:
            return AnomalyType.MISSING_CHECK_OUT

        if worked_minutes is not None and worked_minutes > self.max_daily_worked_minutes:
            return AnomalyType.EXCESSIVE_HOURS

        punctuality = classify_punctuality(check_in, check_out, schedule, work_date)
        if punctuality.late and status == AttendanceStatus.PRESENT:
            return AnomalyType.LATE_WITHOUT_STATUS
        if punctuality.early_leave and status == AttendanceStatus.PRESENT:
            return AnomalyType.EARLY_DEPARTURE

        if self._is_unplanned_weekend_work(work_date, check_in, status, schedule, context):
            return AnomalyType.WEEKEND_WORK_UNPLANNED
        return None

    @staticmethod
    def _is_unplanned_weekend_work(
        work_date: date,
        check_in: Optional[time],
        status: AttendanceStatus,
        schedule: Optional[WorkSchedule],
        context: DayContext,
    ) -> bool:
        if schedule is not None:
            non_working = not schedule.is_working_day(work_date)
        else:
            non_working = work_date.weekday() >= 5
        if not non_working:
            return False
        if context.is_planned_non_working_activity or status in _PLANNED_STATUSES:
            return False
        return check_in is not None or status in PRESENCE_STATUSES

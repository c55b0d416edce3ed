from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import AnomalyType, AttendanceSource, AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one calendar date.

    ``worked_minutes`` is always derived from check-in/out; ``version`` guards
    every write (compare-and-set).
    """

    attendance_id: int
    employee_id: int
    work_date: date
    check_in: Optional[time]
    check_out: Optional[time]
    status: AttendanceStatus
    worked_minutes: Optional[int] = None
    is_manual_entry: bool = False
    source: AttendanceSource = AttendanceSource.CLOCK
    notes: Optional[str] = None
    is_anomaly: bool = False
    anomaly_type: Optional[AnomalyType] = None
    anomaly_resolved: bool = False
    anomaly_resolved_by: Optional[int] = None
    anomaly_resolved_at: Optional[datetime] = None
    anomaly_resolution_notes: Optional[str] = None
    original_check_in: Optional[time] = None
    original_check_out: Optional[time] = None
    corrected_by: Optional[int] = None
    corrected_at: Optional[datetime] = None
    correction_reason: Optional[str] = None
    version: int = 1


@dataclass(frozen=True)
class DayContext:
    """Calendar facts about one employee/date that the status rules depend on."""

    holiday_name: Optional[str] = None
    leave_type_code: Optional[str] = None
    leave_type_name: Optional[str] = None
    recovery_period_name: Optional[str] = None
    recovery_is_day_off: Optional[bool] = None
    approved_overtime_hours: Optional[Decimal] = None

    @property
    def has_recovery(self) -> bool:
        return self.recovery_period_name is not None

    @property
    def is_planned_non_working_activity(self) -> bool:
        return self.has_recovery or self.holiday_name is not None


@dataclass(frozen=True)
class Punctuality:
    late: bool = False
    early_leave: bool = False
    late_minutes: int = 0
    early_leave_minutes: int = 0


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of an anomaly resolution.

    ``still_anomalous`` is True when the corrected values triggered a rule
    again; ``record.anomaly_type`` then names the new anomaly.
    """

    record: AttendanceRecord
    still_anomalous: bool

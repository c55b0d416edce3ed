from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord, DayContext


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> int:
        """Insert a new record; raises ConflictError if one exists for that employee/date."""

        raise NotImplementedError

    def update_if_version(self, record: AttendanceRecord, *, expected_version: int) -> bool:
        """Write every mutable field and bump ``version``.

        Only applies when the stored version still equals ``expected_version``;
        returns False otherwise (nothing written).
        """

        raise NotImplementedError

    def list_unresolved_anomalies(self, *, limit: int = 200) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open_days(self, work_date: date) -> Sequence[AttendanceRecord]:
        """Records of ``work_date`` with a check-in, no check-out and no anomaly yet."""

        raise NotImplementedError


class DayContextProvider(Protocol):
    def get_day_context(self, *, employee_id: int, work_date: date) -> DayContext:
        raise NotImplementedError

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import AnomalyType, AttendanceSource, AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRecord, DayContext
from .repository import AttendanceRepository, DayContextProvider

_COLUMNS = (
    "attendance_id, employee_id, work_date, check_in, check_out, status, worked_minutes, "
    "is_manual_entry, source, notes, is_anomaly, anomaly_type, anomaly_resolved, "
    "anomaly_resolved_by, anomaly_resolved_at, anomaly_resolution_notes, "
    "original_check_in, original_check_out, corrected_by, corrected_at, correction_reason, version"
)

_MUTABLE = (
    "check_in", "check_out", "status", "worked_minutes", "is_manual_entry", "source", "notes",
    "is_anomaly", "anomaly_type", "anomaly_resolved", "anomaly_resolved_by", "anomaly_resolved_at",
    "anomaly_resolution_notes", "original_check_in", "original_check_out",
    "corrected_by", "corrected_at", "correction_reason",
)


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        check_in=normalize_mysql_time(r.get("check_in")),
        check_out=normalize_mysql_time(r.get("check_out")),
        status=AttendanceStatus(r["status"]),
        worked_minutes=int(r["worked_minutes"]) if r.get("worked_minutes") is not None else None,
        is_manual_entry=bool(r["is_manual_entry"]),
        source=AttendanceSource(r["source"]),
        notes=r.get("notes"),
        is_anomaly=bool(r["is_anomaly"]),
        anomaly_type=AnomalyType(r["anomaly_type"]) if r.get("anomaly_type") else None,
        anomaly_resolved=bool(r["anomaly_resolved"]),
        anomaly_resolved_by=r.get("anomaly_resolved_by"),
        anomaly_resolved_at=r.get("anomaly_resolved_at"),
        anomaly_resolution_notes=r.get("anomaly_resolution_notes"),
        original_check_in=normalize_mysql_time(r.get("original_check_in")),
        original_check_out=normalize_mysql_time(r.get("original_check_out")),
        corrected_by=r.get("corrected_by"),
        corrected_at=r.get("corrected_at"),
        correction_reason=r.get("correction_reason"),
        version=int(r["version"]),
    )


def _db_value(value):
    if isinstance(value, (AttendanceStatus, AttendanceSource, AnomalyType)):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(self, record: AttendanceRecord) -> int:
        columns = ("employee_id", "work_date") + _MUTABLE
        values = [record.employee_id, record.work_date] + [getattr(record, c) for c in _MUTABLE]
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO attendance_records({", ".join(columns)}, version)
                    VALUES({",".join(["%s"] * len(columns))}, 1)
                    """,
                    tuple(_db_value(v) for v in values),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError:
            raise ConflictError("AttendanceRecord", f"{record.employee_id}@{record.work_date.isoformat()}")

    def update_if_version(self, record: AttendanceRecord, *, expected_version: int) -> bool:
        assignments = ", ".join(f"{c}=%s" for c in _MUTABLE)
        values = [_db_value(getattr(record, c)) for c in _MUTABLE]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {assignments}, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                tuple(values + [int(record.attendance_id), int(expected_version)]),
            )
            return cur.rowcount > 0

    def list_unresolved_anomalies(self, *, limit: int = 200) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE is_anomaly=1 AND anomaly_resolved=0
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_open_days(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE work_date=%s AND check_in IS NOT NULL AND check_out IS NULL AND is_anomaly=0
                ORDER BY employee_id
                """,
                (work_date,),
            )
            return [_row_to_record(r) for r in fetchall(cur)]


class MySQLDayContextProvider(DayContextProvider):
    """Reads holidays, approved leave, recovery declarations and approved overtime."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_day_context(self, *, employee_id: int, work_date: date) -> DayContext:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT name FROM public_holidays WHERE holiday_date=%s LIMIT 1", (work_date,))
            holiday = fetchone(cur)

            cur.execute(
                """
                SELECT t.code, t.name
                FROM leave_requests r
                JOIN leave_types t ON t.leave_type_id = r.leave_type_id
                WHERE r.employee_id=%s AND r.status IN ('approved', 'approved_hr')
                  AND %s BETWEEN r.start_date AND r.end_date
                LIMIT 1
                """,
                (int(employee_id), work_date),
            )
            leave = fetchone(cur)

            # A declaration's own scope wins; unscoped declarations inherit the period's.
            cur.execute(
                """
                SELECT p.name, d.is_day_off
                FROM recovery_declarations d
                JOIN recovery_periods p ON p.period_id = d.period_id
                LEFT JOIN employees e ON e.employee_id = %s
                WHERE d.recovery_date=%s AND p.status='active'
                  AND (
                    (COALESCE(d.department_id, d.segment_id, d.centre_id) IS NOT NULL
                     AND (d.department_id = e.department_id
                          OR d.segment_id = e.segment_id
                          OR d.centre_id = e.centre_id))
                    OR (COALESCE(d.department_id, d.segment_id, d.centre_id) IS NULL
                        AND (p.applies_to_all = 1
                             OR p.department_id = e.department_id
                             OR p.segment_id = e.segment_id
                             OR p.centre_id = e.centre_id))
                  )
                LIMIT 1
                """,
                (int(employee_id), work_date),
            )
            recovery = fetchone(cur)

            cur.execute(
                """
                SELECT estimated_hours FROM overtime_requests
                WHERE employee_id=%s AND request_date=%s AND status='approved'
                ORDER BY request_id DESC
                LIMIT 1
                """,
                (int(employee_id), work_date),
            )
            overtime = fetchone(cur)

        return DayContext(
            holiday_name=holiday["name"] if holiday else None,
            leave_type_code=leave["code"] if leave else None,
            leave_type_name=leave["name"] if leave else None,
            recovery_period_name=recovery["name"] if recovery else None,
            recovery_is_day_off=bool(recovery["is_day_off"]) if recovery else None,
            approved_overtime_hours=as_decimal(overtime["estimated_hours"]) if overtime else None,
        )

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import OvertimePriority, OvertimeRequestType, OvertimeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import OvertimeRequest
from .repository import OvertimeRepository


def _row_to_request(r: dict) -> OvertimeRequest:
    return OvertimeRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        request_date=r["request_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        estimated_hours=as_decimal(r["estimated_hours"]),
        status=OvertimeStatus(r["status"]),
        reason=r.get("reason"),
        priority=OvertimePriority(r["priority"]),
        request_type=OvertimeRequestType(r["request_type"]),
        project_code=r.get("project_code"),
        requested_by=r.get("requested_by"),
        created_at=r.get("created_at"),
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        decision_comment=r.get("decision_comment"),
    )


class MySQLOvertimeRepository(OvertimeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[OvertimeRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM overtime_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def create(self, request: OvertimeRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO overtime_requests(employee_id, request_date, start_time, end_time, estimated_hours,
                    reason, priority, request_type, project_code, requested_by, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request.employee_id),
                    request.request_date,
                    request.start_time,
                    request.end_time,
                    request.estimated_hours,
                    request.reason,
                    request.priority.value,
                    request.request_type.value,
                    request.project_code,
                    request.requested_by,
                    request.status.value,
                    request.created_at,
                ),
            )
            return int(cur.lastrowid)

    def decide(
        self,
        *,
        request_id: int,
        new_status: OvertimeStatus,
        decided_by: Optional[int],
        decided_at: datetime,
        comment: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE overtime_requests
                SET status=%s, decided_by=%s, decided_at=%s, decision_comment=%s
                WHERE request_id=%s AND status='pending'
                """,
                (new_status.value, decided_by, decided_at, comment, int(request_id)),
            )
            return cur.rowcount > 0

    def list(
        self,
        *,
        status: Optional[OvertimeStatus] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[OvertimeRequest]:
        where = ["1=1"]
        params: list = []
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        if year is not None:
            where.append("YEAR(request_date)=%s")
            params.append(int(year))
        if month is not None:
            where.append("MONTH(request_date)=%s")
            params.append(int(month))
        if employee_id is not None:
            where.append("employee_id=%s")
            params.append(int(employee_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT * FROM overtime_requests WHERE {' AND '.join(where)} ORDER BY request_date DESC, request_id DESC",
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

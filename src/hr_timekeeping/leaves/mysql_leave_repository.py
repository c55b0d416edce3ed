from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import ApprovalStage, LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import LeaveRequest, LeaveType, StageApproval
from .repository import LeaveRepository
from .workflow import parse_stage_chain

_REQUEST_COLUMNS = (
    "request_id, employee_id, leave_type_id, start_date, end_date, start_half_day, end_half_day, "
    "total_days, reason, status, created_at, "
    "n1_approver_id, n1_approved_at, n1_comment, n2_approver_id, n2_approved_at, n2_comment, "
    "hr_approver_id, hr_approved_at, hr_comment, rejected_by, rejected_at, rejection_reason, balance_deducted"
)


def _row_to_type(r: dict) -> LeaveType:
    return LeaveType(
        leave_type_id=int(r["leave_type_id"]),
        code=str(r["code"]),
        name=str(r["name"]),
        min_days_per_request=as_decimal(r["min_days_per_request"]),
        max_days_per_request=as_decimal(r["max_days_per_request"]) if r.get("max_days_per_request") is not None else None,
        approval_stages=parse_stage_chain(r["approval_stages"]),
        deducts_balance=bool(r["deducts_balance"]),
    )


def _stage(r: dict, prefix: str) -> Optional[StageApproval]:
    approver = r.get(f"{prefix}_approver_id")
    if approver is None:
        return None
    return StageApproval(
        approver_id=int(approver),
        approved_at=r[f"{prefix}_approved_at"],
        comment=r.get(f"{prefix}_comment") or "",
    )


def _row_to_request(r: dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=int(r["request_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        start_half_day=bool(r["start_half_day"]),
        end_half_day=bool(r["end_half_day"]),
        total_days=as_decimal(r["total_days"]),
        reason=r.get("reason"),
        status=LeaveStatus(r["status"]),
        created_at=r.get("created_at"),
        n1=_stage(r, "n1"),
        n2=_stage(r, "n2"),
        hr=_stage(r, "hr"),
        rejected_by=r.get("rejected_by"),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
        balance_deducted=bool(r["balance_deducted"]),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_type(self, leave_type_id: int) -> Optional[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM leave_types WHERE leave_type_id=%s", (int(leave_type_id),))
            r = fetchone(cur)
            return _row_to_type(r) if r else None

    def list_types(self) -> Sequence[LeaveType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM leave_types ORDER BY name")
            return [_row_to_type(r) for r in fetchall(cur)]

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE employee_id=%s ORDER BY start_date DESC",
                (int(employee_id),),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests WHERE status=%s ORDER BY created_at ASC",
                (status.value,),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def find_overlapping(self, *, employee_id: int, start_date: date, end_date: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS} FROM leave_requests
                WHERE employee_id=%s AND status <> 'rejected'
                  AND start_date <= %s AND end_date >= %s
                ORDER BY request_id
                LIMIT 1
                """,
                (int(employee_id), end_date, start_date),
            )
            r = fetchone(cur)
            return _row_to_request(r) if r else None

    def create(self, request: LeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(employee_id, leave_type_id, start_date, end_date,
                    start_half_day, end_half_day, total_days, reason, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request.employee_id),
                    int(request.leave_type_id),
                    request.start_date,
                    request.end_date,
                    int(request.start_half_day),
                    int(request.end_half_day),
                    request.total_days,
                    request.reason,
                    request.status.value,
                    request.created_at,
                ),
            )
            return int(cur.lastrowid)

    def record_approval(
        self,
        *,
        request_id: int,
        stage: ApprovalStage,
        approval: StageApproval,
        expected_status: LeaveStatus,
        new_status: LeaveStatus,
        debit_days: Optional[Decimal] = None,
    ) -> bool:
        prefix = stage.value
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE leave_requests
                SET status=%s, {prefix}_approver_id=%s, {prefix}_approved_at=%s, {prefix}_comment=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    new_status.value,
                    int(approval.approver_id),
                    approval.approved_at,
                    approval.comment,
                    int(request_id),
                    expected_status.value,
                ),
            )
            if cur.rowcount == 0:
                return False
            if debit_days is not None:
                self._debit_balance_once(cur, request_id=int(request_id), days=debit_days)
            return True

    @staticmethod
    def _debit_balance_once(cur, *, request_id: int, days: Decimal) -> None:
        # Same transaction as the status write.
        cur.execute(
            "UPDATE leave_requests SET balance_deducted=1 WHERE request_id=%s AND balance_deducted=0",
            (request_id,),
        )
        if cur.rowcount == 0:
            return
        cur.execute(
            """
            INSERT INTO leave_balances(employee_id, year, balance_days)
            SELECT employee_id, YEAR(start_date), -%s FROM leave_requests WHERE request_id=%s
            ON DUPLICATE KEY UPDATE balance_days = leave_balances.balance_days - %s
            """,
            (days, request_id, days),
        )

    def record_rejection(
        self,
        *,
        request_id: int,
        rejected_by: int,
        rejected_at: datetime,
        reason: str,
        expected_status: LeaveStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status='rejected', rejected_by=%s, rejected_at=%s, rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (int(rejected_by), rejected_at, reason, int(request_id), expected_status.value),
            )
            return cur.rowcount > 0

    def get_balance(self, *, employee_id: int, year: int) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT balance_days FROM leave_balances WHERE employee_id=%s AND year=%s",
                (int(employee_id), int(year)),
            )
            r = fetchone(cur)
            return as_decimal(r["balance_days"]) if r else Decimal("0")

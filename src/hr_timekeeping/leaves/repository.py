from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalStage, LeaveStatus
from .model import LeaveRequest, LeaveType, StageApproval


class LeaveRepository(Protocol):
    def get_type(self, leave_type_id: int) -> Optional[LeaveType]:
        raise NotImplementedError

    def list_types(self) -> Sequence[LeaveType]:
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def list_by_status(self, status: LeaveStatus) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def find_overlapping(self, *, employee_id: int, start_date: date, end_date: date) -> Optional[LeaveRequest]:
        """Any non-rejected request of the employee intersecting the range."""

        raise NotImplementedError

    def create(self, request: LeaveRequest) -> int:
        raise NotImplementedError

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
        """Compare-and-set: applies only while status == ``expected_status``.

        With ``debit_days`` the employee's balance for the start year is
        debited and ``balance_deducted`` flagged in the same transaction,
        at most once per request.
        """

        raise NotImplementedError

    def record_rejection(
        self,
        *,
        request_id: int,
        rejected_by: int,
        rejected_at: datetime,
        reason: str,
        expected_status: LeaveStatus,
    ) -> bool:
        raise NotImplementedError

    def get_balance(self, *, employee_id: int, year: int) -> Decimal:
        raise NotImplementedError

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import require_non_empty
from ..core.enums import ApprovalStage, LeaveStatus
from ..core.exceptions import ConflictError, InvalidStateTransition, NotFoundError, OverlappingLeaveError
from .model import LeaveRequest, LeaveType, StageApproval
from .repository import LeaveRepository
from .workflow import APPROVED_FINAL_STATUSES, check_approve, check_reject, compute_total_days, validate_bounds

logger = logging.getLogger(__name__)


class LeaveService:
    def __init__(self, leaves: LeaveRepository, *, clock: Callable[[], datetime] = now_utc):
        self._leaves = leaves
        self._clock = clock

    def create(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        start_half_day: bool = False,
        end_half_day: bool = False,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        leave_type = self._get_type(leave_type_id)
        total = compute_total_days(start_date, end_date, start_half_day=start_half_day, end_half_day=end_half_day)
        validate_bounds(total, leave_type)

        clash = self._leaves.find_overlapping(employee_id=employee_id, start_date=start_date, end_date=end_date)
        if clash is not None:
            raise OverlappingLeaveError(clash.request_id)

        request = LeaveRequest(
            request_id=0,
            employee_id=int(employee_id),
            leave_type_id=leave_type.leave_type_id,
            start_date=start_date,
            end_date=end_date,
            start_half_day=bool(start_half_day),
            end_half_day=bool(end_half_day),
            total_days=total,
            reason=(reason or "").strip() or None,
            created_at=self._clock(),
        )
        new_id = self._leaves.create(request)
        logger.info("Leave request %s created for employee %s (%s days)", new_id, employee_id, total)
        return replace(request, request_id=new_id)

    def approve(self, *, request_id: int, stage: ApprovalStage, approver_id: int, comment: str) -> LeaveRequest:
        text = require_non_empty(comment, "Approval comment")
        request = self.get(request_id)
        leave_type = self._get_type(request.leave_type_id)
        new_status = check_approve(request.status, stage, leave_type.approval_stages)

        approval = StageApproval(approver_id=int(approver_id), approved_at=self._clock(), comment=text)
        # A low balance does not block approval; the balance may go negative.
        debit_days = None
        if new_status in APPROVED_FINAL_STATUSES and leave_type.deducts_balance and not request.balance_deducted:
            debit_days = request.total_days
        ok = self._leaves.record_approval(
            request_id=request.request_id,
            stage=stage,
            approval=approval,
            expected_status=request.status,
            new_status=new_status,
            debit_days=debit_days,
        )
        if not ok:
            self._raise_lost_race(request, f"approve at stage {stage.value}")

        logger.info(
            "Leave request %s: %s -> %s by %s",
            request.request_id,
            request.status.value,
            new_status.value,
            approver_id,
        )
        updated = replace(request, status=new_status, **{stage.value: approval})
        if debit_days is not None:
            logger.info(
                "Leave balance of employee %s debited %s day(s) for request %s",
                request.employee_id,
                debit_days,
                request.request_id,
            )
            updated = replace(updated, balance_deducted=True)
        return updated

    def reject(self, *, request_id: int, approver_id: int, reason: str) -> LeaveRequest:
        text = require_non_empty(reason, "Rejection reason")
        request = self.get(request_id)
        check_reject(request.status)

        rejected_at = self._clock()
        ok = self._leaves.record_rejection(
            request_id=request.request_id,
            rejected_by=int(approver_id),
            rejected_at=rejected_at,
            reason=text,
            expected_status=request.status,
        )
        if not ok:
            self._raise_lost_race(request, "reject")

        logger.info("Leave request %s: %s -> rejected by %s", request.request_id, request.status.value, approver_id)
        return replace(
            request,
            status=LeaveStatus.REJECTED,
            rejected_by=int(approver_id),
            rejected_at=rejected_at,
            rejection_reason=text,
        )

    def get(self, request_id: int) -> LeaveRequest:
        request = self._leaves.get_by_id(int(request_id))
        if request is None:
            raise NotFoundError("LeaveRequest", request_id)
        return request

    def list_for_employee(self, employee_id: int) -> Sequence[LeaveRequest]:
        return self._leaves.list_for_employee(int(employee_id))

    def list_pending(self) -> Sequence[LeaveRequest]:
        return self._leaves.list_by_status(LeaveStatus.PENDING)

    def list_types(self) -> Sequence[LeaveType]:
        return self._leaves.list_types()

    def get_balance(self, *, employee_id: int, year: int) -> Decimal:
        return self._leaves.get_balance(employee_id=int(employee_id), year=int(year))

    def _get_type(self, leave_type_id: int) -> LeaveType:
        leave_type = self._leaves.get_type(int(leave_type_id))
        if leave_type is None:
            raise NotFoundError("LeaveType", leave_type_id)
        return leave_type

    def _raise_lost_race(self, request: LeaveRequest, attempted: str) -> None:
        latest = self._leaves.get_by_id(request.request_id)
        logger.warning("Leave request %s: concurrent write lost (%s)", request.request_id, attempted)
        if latest is not None and latest.status != request.status:
            raise InvalidStateTransition(latest.status.value, attempted)
        raise ConflictError("LeaveRequest", request.request_id, current_status=latest.status.value if latest else None)

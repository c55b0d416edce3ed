from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..core.enums import ApprovalStage, LeaveStatus

DEFAULT_APPROVAL_STAGES: Tuple[ApprovalStage, ...] = (ApprovalStage.N1, ApprovalStage.N2, ApprovalStage.HR)


@dataclass(frozen=True)
class LeaveType:
    leave_type_id: int
    code: str
    name: str
    min_days_per_request: Decimal = Decimal("0.5")
    max_days_per_request: Optional[Decimal] = None
    approval_stages: Tuple[ApprovalStage, ...] = DEFAULT_APPROVAL_STAGES
    deducts_balance: bool = True


@dataclass(frozen=True)
class StageApproval:
    approver_id: int
    approved_at: datetime
    comment: str


@dataclass(frozen=True)
class LeaveRequest:
    """A leave request and its approval trail.

    Stage approvals stay in place after a rejection as audit history.
    """

    request_id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    total_days: Decimal
    status: LeaveStatus = LeaveStatus.PENDING
    start_half_day: bool = False
    end_half_day: bool = False
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    n1: Optional[StageApproval] = None
    n2: Optional[StageApproval] = None
    hr: Optional[StageApproval] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    balance_deducted: bool = False

    def approval_for(self, stage: ApprovalStage) -> Optional[StageApproval]:
        return getattr(self, stage.value)

"""Leave approval state machine.

pending -> approved_n1 -> approved_n2 -> approved_hr, with shorter chains
ending in ``approved``. ``rejected`` is reachable from any non-final state.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence, Tuple

from ..core.enums import ApprovalStage, LeaveStatus
from ..core.exceptions import InvalidStateTransition, LeaveBoundsError, ValidationError
from .model import DEFAULT_APPROVAL_STAGES, LeaveType

ALLOWED_STAGE_CHAINS = frozenset(
    {
        DEFAULT_APPROVAL_STAGES,
        (ApprovalStage.N1, ApprovalStage.HR),
        (ApprovalStage.N1,),
    }
)

_STAGE_STATUS = {
    ApprovalStage.N1: LeaveStatus.APPROVED_N1,
    ApprovalStage.N2: LeaveStatus.APPROVED_N2,
    ApprovalStage.HR: LeaveStatus.APPROVED_HR,
}

FINAL_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.APPROVED_HR, LeaveStatus.REJECTED})
APPROVED_FINAL_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.APPROVED_HR})


def parse_stage_chain(value: str) -> Tuple[ApprovalStage, ...]:
    """``"n1,n2,hr"`` -> (N1, N2, HR); anything but an allowed chain fails."""

    try:
        chain = tuple(ApprovalStage(part.strip().lower()) for part in (value or "").split(",") if part.strip())
    except ValueError:
        raise ValidationError(f"Unknown approval stage in {value!r}")
    if chain not in ALLOWED_STAGE_CHAINS:
        raise ValidationError(f"Unsupported approval chain {value!r}")
    return chain


def compute_total_days(start: date, end: date, *, start_half_day: bool = False, end_half_day: bool = False) -> Decimal:
    if end < start:
        raise ValidationError("End date must not be before start date")
    total = Decimal((end - start).days + 1)
    if start_half_day:
        total -= Decimal("0.5")
    if end_half_day:
        total -= Decimal("0.5")
    return max(total, Decimal("0"))


def validate_bounds(total_days: Decimal, leave_type: LeaveType) -> None:
    if total_days < leave_type.min_days_per_request:
        raise LeaveBoundsError(
            f"{leave_type.name} requires at least {leave_type.min_days_per_request} day(s) per request"
        )
    if leave_type.max_days_per_request is not None and total_days > leave_type.max_days_per_request:
        raise LeaveBoundsError(
            f"{leave_type.name} allows at most {leave_type.max_days_per_request} day(s) per request"
        )


def expected_predecessor(stage: ApprovalStage, chain: Sequence[ApprovalStage]) -> LeaveStatus:
    if stage not in chain:
        raise ValueError(f"{stage.value} is not in {chain}")
    index = list(chain).index(stage)
    if index == 0:
        return LeaveStatus.PENDING
    return _STAGE_STATUS[chain[index - 1]]


def status_after(stage: ApprovalStage, chain: Sequence[ApprovalStage]) -> LeaveStatus:
    if stage == chain[-1]:
        return LeaveStatus.APPROVED_HR if tuple(chain) == DEFAULT_APPROVAL_STAGES else LeaveStatus.APPROVED
    return _STAGE_STATUS[stage]


def check_approve(current: LeaveStatus, stage: ApprovalStage, chain: Sequence[ApprovalStage]) -> LeaveStatus:
    """Validate an approval and return the status it leads to."""

    if stage not in chain:
        raise InvalidStateTransition(
            current.value,
            f"approve at stage {stage.value}",
            f"Stage {stage.value} is not part of this leave type's approval chain",
        )
    expected = expected_predecessor(stage, chain)
    if current != expected:
        raise InvalidStateTransition(current.value, f"approve at stage {stage.value}")
    return status_after(stage, chain)


def check_reject(current: LeaveStatus) -> None:
    if current in FINAL_STATUSES:
        raise InvalidStateTransition(current.value, "reject")

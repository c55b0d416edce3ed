"""Pure recovery-ledger rules; persistence lives in the repository."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Mapping

from ..core import constants
from ..core.enums import RecoveryDeclarationStatus, RecoveryPeriodStatus
from ..core.exceptions import InsufficientRemainingHours, InvalidHours, InvalidStateTransition, ValidationError
from .model import EmployeeDeduction, PeriodSummary, RecoveryDeclaration, RecoveryPeriod


def normalize_hours(*, is_day_off: bool, hours) -> Decimal:
    """Day off -> 0 (paid, nothing owed); otherwise hours must be positive."""

    if is_day_off:
        return Decimal("0")
    try:
        value = Decimal(str(hours))
    except (ArithmeticError, ValueError, TypeError):
        raise InvalidHours(f"Invalid hours value {hours!r}")
    if not value.is_finite() or value <= 0:
        raise InvalidHours("Hours to recover must be greater than 0 for a recovery day")
    return value.quantize(constants.HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def check_remaining(requested: Decimal, remaining: Decimal) -> None:
    if requested > remaining:
        raise InsufficientRemainingHours(requested, remaining)


def check_declarable(period: RecoveryPeriod, recovery_date: date) -> None:
    if period.status != RecoveryPeriodStatus.ACTIVE:
        raise InvalidStateTransition(period.status.value, "declare recovery", "Recovery period is not active")
    if not period.covers(recovery_date):
        raise ValidationError(
            f"{recovery_date.isoformat()} is outside the period "
            f"{period.start_date.isoformat()} - {period.end_date.isoformat()}"
        )


def check_mutable(declaration: RecoveryDeclaration, action: str) -> None:
    if declaration.status == RecoveryDeclarationStatus.COMPLETED:
        raise InvalidStateTransition(declaration.status.value, action, f"Cannot {action} a completed declaration")


def remaining_excluding(period: RecoveryPeriod, declaration: RecoveryDeclaration) -> Decimal:
    """Hours still available if ``declaration`` did not exist."""

    return period.hours_remaining + declaration.debited_hours


def compute_deductions(hours: Decimal, hourly_rates: Mapping[int, Decimal]) -> List[EmployeeDeduction]:
    out = []
    for employee_id, rate in sorted(hourly_rates.items()):
        rate = Decimal(str(rate))
        if rate < 0:
            raise ValidationError(f"Hourly rate for employee {employee_id} cannot be negative")
        amount = (rate * hours).quantize(constants.MONEY_QUANTUM, rounding=ROUND_HALF_UP)
        out.append(EmployeeDeduction(employee_id=int(employee_id), hourly_rate=rate, hours=hours, amount=amount))
    return out


def summarize(period: RecoveryPeriod, declarations: Iterable[RecoveryDeclaration]) -> PeriodSummary:
    items = list(declarations)
    return PeriodSummary(
        period_id=period.period_id,
        total_declarations=len(items),
        days_off_count=sum(1 for d in items if d.is_day_off),
        recovery_days_count=sum(1 for d in items if not d.is_day_off),
        scheduled_recovery_hours=sum((d.debited_hours for d in items), Decimal("0")),
        completed_declarations=sum(1 for d in items if d.status == RecoveryDeclarationStatus.COMPLETED),
        total_hours_to_recover=period.total_hours_to_recover,
        hours_remaining=period.hours_remaining,
    )

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from ..core.enums import RecoveryDeclarationStatus, RecoveryPeriodStatus


@dataclass(frozen=True)
class RecoveryPeriod:
    """A window in which employees pay back hours not worked.

    ``hours_remaining`` is debited by every non-day-off declaration;
    ``version`` guards each debit.
    """

    period_id: int
    name: str
    start_date: date
    end_date: date
    total_hours_to_recover: Decimal
    hours_remaining: Decimal
    department_id: Optional[int] = None
    segment_id: Optional[int] = None
    centre_id: Optional[int] = None
    applies_to_all: bool = True
    status: RecoveryPeriodStatus = RecoveryPeriodStatus.ACTIVE
    version: int = 1

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class RecoveryDeclaration:
    declaration_id: int
    period_id: int
    recovery_date: date
    is_day_off: bool
    hours_to_recover: Decimal
    department_id: Optional[int] = None
    segment_id: Optional[int] = None
    centre_id: Optional[int] = None
    notes: Optional[str] = None
    status: RecoveryDeclarationStatus = RecoveryDeclarationStatus.ACTIVE

    @property
    def debited_hours(self) -> Decimal:
        return Decimal("0") if self.is_day_off else self.hours_to_recover


@dataclass(frozen=True)
class EmployeeDeduction:
    employee_id: int
    hourly_rate: Decimal
    hours: Decimal
    amount: Decimal


@dataclass(frozen=True)
class CompletionResult:
    declaration: RecoveryDeclaration
    deductions: Tuple[EmployeeDeduction, ...]
    total_deductions: Decimal


@dataclass(frozen=True)
class PeriodSummary:
    period_id: int
    total_declarations: int
    days_off_count: int
    recovery_days_count: int
    scheduled_recovery_hours: Decimal
    completed_declarations: int
    total_hours_to_recover: Decimal
    hours_remaining: Decimal

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..common.validators import require_non_empty
from ..core import constants
from ..core.enums import RecoveryDeclarationStatus, RecoveryPeriodStatus
from ..core.exceptions import (
    ConflictError,
    InsufficientRemainingHours,
    InvalidHours,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)
from .ledger import (
    check_declarable,
    check_mutable,
    check_remaining,
    compute_deductions,
    normalize_hours,
    remaining_excluding,
    summarize,
)
from .model import CompletionResult, PeriodSummary, RecoveryDeclaration, RecoveryPeriod
from .repository import RecoveryRepository

logger = logging.getLogger(__name__)


class RecoveryService:
    def __init__(self, recovery: RecoveryRepository):
        self._recovery = recovery

    # ----- periods -----

    def create_period(
        self,
        *,
        name: str,
        start_date: date,
        end_date: date,
        total_hours_to_recover,
        department_id: Optional[int] = None,
        segment_id: Optional[int] = None,
        centre_id: Optional[int] = None,
        applies_to_all: bool = False,
    ) -> RecoveryPeriod:
        label = require_non_empty(name, "Period name")
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        try:
            total = Decimal(str(total_hours_to_recover)).quantize(constants.HOURS_QUANTUM)
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidHours(f"Invalid hours value {total_hours_to_recover!r}")
        if total < 0:
            raise InvalidHours("Total hours to recover cannot be negative")

        # No scope at all means everyone.
        unscoped = department_id is None and segment_id is None and centre_id is None
        period = RecoveryPeriod(
            period_id=0,
            name=label,
            start_date=start_date,
            end_date=end_date,
            total_hours_to_recover=total,
            hours_remaining=total,
            department_id=department_id,
            segment_id=segment_id,
            centre_id=centre_id,
            applies_to_all=bool(applies_to_all) or unscoped,
        )
        new_id = self._recovery.create_period(period)
        logger.info("Recovery period %s created (%sh to recover)", new_id, total)
        return replace(period, period_id=new_id)

    def close_period(self, *, period_id: int) -> RecoveryPeriod:
        period = self.get_period(period_id)
        if period.status == RecoveryPeriodStatus.CLOSED:
            raise InvalidStateTransition(period.status.value, "close period")
        self._recovery.set_period_status(period_id=period.period_id, status=RecoveryPeriodStatus.CLOSED)
        logger.info("Recovery period %s closed with %sh remaining", period.period_id, period.hours_remaining)
        return replace(period, status=RecoveryPeriodStatus.CLOSED, version=period.version + 1)

    def get_period(self, period_id: int) -> RecoveryPeriod:
        period = self._recovery.get_period(int(period_id))
        if period is None:
            raise NotFoundError("RecoveryPeriod", period_id)
        return period

    def list_periods(self, *, status: Optional[RecoveryPeriodStatus] = None) -> Sequence[RecoveryPeriod]:
        return self._recovery.list_periods(status=status)

    def summary(self, *, period_id: int) -> PeriodSummary:
        period = self.get_period(period_id)
        return summarize(period, self._recovery.list_declarations(period_id=period.period_id))

    # ----- declarations -----

    def declare(
        self,
        *,
        period_id: int,
        recovery_date: date,
        is_day_off: bool,
        hours=None,
        notes: Optional[str] = None,
        department_id: Optional[int] = None,
        segment_id: Optional[int] = None,
        centre_id: Optional[int] = None,
    ) -> RecoveryDeclaration:
        """Record a day off or a recovery day.

        A recovery day debits ``hours`` from the period in the same
        transaction as the insert; a day off debits nothing.
        """

        amount = normalize_hours(is_day_off=bool(is_day_off), hours=hours)
        period = self.get_period(period_id)
        check_declarable(period, recovery_date)
        check_remaining(amount, period.hours_remaining)

        declaration = RecoveryDeclaration(
            declaration_id=0,
            period_id=period.period_id,
            recovery_date=recovery_date,
            is_day_off=bool(is_day_off),
            hours_to_recover=amount,
            department_id=department_id if department_id is not None else period.department_id,
            segment_id=segment_id if segment_id is not None else period.segment_id,
            centre_id=centre_id if centre_id is not None else period.centre_id,
            notes=(notes or "").strip() or None,
        )
        new_id = self._recovery.insert_declaration(declaration, expected_version=period.version)
        if new_id is None:
            self._raise_lost_race(period, amount)

        logger.info(
            "Recovery declaration %s on %s for period %s (%sh, day_off=%s)",
            new_id,
            recovery_date,
            period.period_id,
            amount,
            declaration.is_day_off,
        )
        return replace(declaration, declaration_id=new_id)

    def update(
        self,
        *,
        declaration_id: int,
        hours=None,
        recovery_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> RecoveryDeclaration:
        """Change hours/date/notes; ``None`` keeps the stored value.

        The new hours are checked against what would remain without this
        declaration's own previous contribution.
        """

        current = self.get_declaration(declaration_id)
        check_mutable(current, "update")
        period = self.get_period(current.period_id)

        new_hours = current.hours_to_recover
        if hours is not None:
            new_hours = normalize_hours(is_day_off=current.is_day_off, hours=hours)
        new_date = recovery_date or current.recovery_date
        check_declarable(period, new_date)

        available = remaining_excluding(period, current)
        if not current.is_day_off:
            check_remaining(new_hours, available)

        new_notes = current.notes
        if notes is not None:
            new_notes = notes.strip() or None
        updated = replace(current, hours_to_recover=new_hours, recovery_date=new_date, notes=new_notes)
        ok = self._recovery.update_declaration(
            updated,
            previous_hours=current.debited_hours,
            expected_version=period.version,
        )
        if not ok:
            latest = self._recovery.get_declaration(current.declaration_id)
            if latest is not None:
                check_mutable(latest, "update")
            self._raise_lost_race(period, new_hours, previous=current.debited_hours)

        logger.info(
            "Recovery declaration %s updated: %sh -> %sh",
            current.declaration_id,
            current.hours_to_recover,
            new_hours,
        )
        return updated

    def delete(self, *, declaration_id: int) -> None:
        current = self.get_declaration(declaration_id)
        check_mutable(current, "delete")
        period = self.get_period(current.period_id)
        if period.status != RecoveryPeriodStatus.ACTIVE:
            raise InvalidStateTransition(period.status.value, "delete declaration", "Recovery period is not active")

        if not self._recovery.delete_declaration(current, expected_version=period.version):
            latest = self._recovery.get_declaration(current.declaration_id)
            if latest is None:
                raise NotFoundError("RecoveryDeclaration", declaration_id)
            check_mutable(latest, "delete")
            raise ConflictError("RecoveryPeriod", period.period_id)

        logger.info(
            "Recovery declaration %s deleted; %sh credited back to period %s",
            current.declaration_id,
            current.debited_hours,
            period.period_id,
        )

    def complete(
        self,
        *,
        declaration_id: int,
        absent_employee_hourly_rates: Optional[Mapping[int, Decimal]] = None,
    ) -> CompletionResult:
        """Mark a declaration completed and price the absences on that day.

        Employees absent on a recovery day owe ``hourly_rate x hours``; a day
        off carries no deduction.
        """

        current = self.get_declaration(declaration_id)
        check_mutable(current, "complete")

        deductions = []
        if not current.is_day_off:
            deductions = compute_deductions(current.hours_to_recover, absent_employee_hourly_rates or {})

        if not self._recovery.complete_declaration(declaration_id=current.declaration_id):
            latest = self._recovery.get_declaration(current.declaration_id)
            raise InvalidStateTransition(latest.status.value if latest else "deleted", "complete")

        total = sum((d.amount for d in deductions), Decimal("0.00"))
        logger.info(
            "Recovery declaration %s completed: %s absent employee(s), deductions %s",
            current.declaration_id,
            len(deductions),
            total,
        )
        return CompletionResult(
            declaration=replace(current, status=RecoveryDeclarationStatus.COMPLETED),
            deductions=tuple(deductions),
            total_deductions=total,
        )

    def get_declaration(self, declaration_id: int) -> RecoveryDeclaration:
        declaration = self._recovery.get_declaration(int(declaration_id))
        if declaration is None:
            raise NotFoundError("RecoveryDeclaration", declaration_id)
        return declaration

    def list_declarations(self, *, period_id: int) -> Sequence[RecoveryDeclaration]:
        return self._recovery.list_declarations(period_id=int(period_id))

    def _raise_lost_race(self, period: RecoveryPeriod, requested: Decimal, *, previous: Decimal = Decimal("0")) -> None:
        latest = self._recovery.get_period(period.period_id)
        logger.warning("Recovery period %s: concurrent write lost (version %s)", period.period_id, period.version)
        if latest is not None:
            check_declarable(latest, latest.start_date)
            if requested > latest.hours_remaining + previous:
                raise InsufficientRemainingHours(requested, latest.hours_remaining + previous)
        raise ConflictError("RecoveryPeriod", period.period_id)

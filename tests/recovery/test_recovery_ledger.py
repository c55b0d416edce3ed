from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from hr_timekeeping.core.enums import RecoveryDeclarationStatus, RecoveryPeriodStatus
from hr_timekeeping.core.exceptions import (
    ConflictError,
    InsufficientRemainingHours,
    InvalidHours,
    InvalidStateTransition,
    ValidationError,
)
from hr_timekeeping.recovery.service import RecoveryService


class FakeRecoveryRepo:
    """Mirrors the SQL guards: period version and non-negative remaining hours."""

    def __init__(self):
        self._lock = threading.Lock()
        self._next_period = 1
        self._next_decl = 1
        self.periods = {}
        self.declarations = {}
        self.before_write = None

    def get_period(self, period_id):
        return self.periods.get(int(period_id))

    def list_periods(self, *, status=None):
        return [p for p in self.periods.values() if status is None or p.status == status]

    def create_period(self, period):
        pid = self._next_period
        self._next_period += 1
        self.periods[pid] = replace(period, period_id=pid)
        return pid

    def set_period_status(self, *, period_id, status):
        p = self.periods[int(period_id)]
        self.periods[int(period_id)] = replace(p, status=status, version=p.version + 1)
        return True

    def get_declaration(self, declaration_id):
        return self.declarations.get(int(declaration_id))

    def list_declarations(self, *, period_id):
        return [d for d in self.declarations.values() if d.period_id == int(period_id)]

    def _move(self, period_id, delta, expected_version):
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook()
        p = self.periods[period_id]
        if p.version != expected_version or p.status != RecoveryPeriodStatus.ACTIVE:
            return False
        if p.hours_remaining - delta < 0:
            return False
        self.periods[period_id] = replace(p, hours_remaining=p.hours_remaining - delta, version=p.version + 1)
        return True

    def insert_declaration(self, declaration, *, expected_version):
        with self._lock:
            if not self._move(declaration.period_id, declaration.debited_hours, expected_version):
                return None
            did = self._next_decl
            self._next_decl += 1
            self.declarations[did] = replace(declaration, declaration_id=did)
            return did

    def update_declaration(self, declaration, *, previous_hours, expected_version):
        with self._lock:
            current = self.declarations.get(declaration.declaration_id)
            if current is None or current.status != RecoveryDeclarationStatus.ACTIVE:
                return False
            if not self._move(declaration.period_id, declaration.debited_hours - previous_hours, expected_version):
                return False
            self.declarations[declaration.declaration_id] = declaration
            return True

    def delete_declaration(self, declaration, *, expected_version):
        with self._lock:
            current = self.declarations.get(declaration.declaration_id)
            if current is None or current.status != RecoveryDeclarationStatus.ACTIVE:
                return False
            if not self._move(declaration.period_id, -declaration.debited_hours, expected_version):
                return False
            del self.declarations[declaration.declaration_id]
            return True

    def complete_declaration(self, *, declaration_id):
        with self._lock:
            current = self.declarations.get(int(declaration_id))
            if current is None or current.status != RecoveryDeclarationStatus.ACTIVE:
                return False
            self.declarations[int(declaration_id)] = replace(current, status=RecoveryDeclarationStatus.COMPLETED)
            return True


@pytest.fixture
def repo():
    return FakeRecoveryRepo()


@pytest.fixture
def svc(repo):
    return RecoveryService(repo)


@pytest.fixture
def period(svc):
    return svc.create_period(
        name="Ramadan 2025",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 4, 30),
        total_hours_to_recover=60,
    )


def _remaining(svc, period):
    return svc.get_period(period.period_id).hours_remaining


def test_unscoped_period_applies_to_all(period):
    assert period.applies_to_all
    assert period.hours_remaining == Decimal("60.00")


def test_debit_sequence(svc, period):
    svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=40)
    assert _remaining(svc, period) == Decimal("20.00")

    with pytest.raises(InsufficientRemainingHours) as exc:
        svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 15), is_day_off=False, hours=25)
    assert exc.value.remaining == Decimal("20.00")
    assert _remaining(svc, period) == Decimal("20.00")

    svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 15), is_day_off=False, hours=20)
    assert _remaining(svc, period) == Decimal("0.00")


def test_day_off_debits_nothing(svc, period):
    decl = svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 3), is_day_off=True, hours=8)
    assert decl.hours_to_recover == Decimal("0")
    assert _remaining(svc, period) == Decimal("60.00")


@pytest.mark.parametrize("hours", [0, -2, None, "abc"])
def test_recovery_day_needs_positive_hours(svc, period, hours):
    with pytest.raises(InvalidHours):
        svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=hours)


def test_date_outside_period(svc, period):
    with pytest.raises(ValidationError):
        svc.declare(period_id=period.period_id, recovery_date=date(2025, 5, 2), is_day_off=False, hours=4)


def test_update_checks_remaining_without_itself(svc, period):
    decl = svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=40)
    svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 9), is_day_off=False, hours=10)

    # 10 left plus its own 40.
    updated = svc.update(declaration_id=decl.declaration_id, hours=50)
    assert updated.hours_to_recover == Decimal("50.00")
    assert _remaining(svc, period) == Decimal("0.00")

    with pytest.raises(InsufficientRemainingHours):
        svc.update(declaration_id=decl.declaration_id, hours=51)
    assert _remaining(svc, period) == Decimal("0.00")


def test_update_keeps_unspecified_fields(svc, period):
    decl = svc.declare(
        period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=6, notes="Saturday"
    )
    updated = svc.update(declaration_id=decl.declaration_id, recovery_date=date(2025, 3, 22))
    assert updated.hours_to_recover == Decimal("6.00")
    assert updated.notes == "Saturday"
    assert _remaining(svc, period) == Decimal("54.00")


def test_delete_credits_back(svc, period):
    decl = svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=15)
    svc.delete(declaration_id=decl.declaration_id)
    assert _remaining(svc, period) == Decimal("60.00")
    assert svc.list_declarations(period_id=period.period_id) == []


def test_completed_declaration_is_immutable(svc, period):
    decl = svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=8)
    result = svc.complete(
        declaration_id=decl.declaration_id,
        absent_employee_hourly_rates={7: Decimal("45.50"), 3: Decimal("30")},
    )
    assert [d.employee_id for d in result.deductions] == [3, 7]
    assert result.deductions[1].amount == Decimal("364.00")
    assert result.total_deductions == Decimal("604.00")

    with pytest.raises(InvalidStateTransition):
        svc.update(declaration_id=decl.declaration_id, hours=4)
    with pytest.raises(InvalidStateTransition):
        svc.delete(declaration_id=decl.declaration_id)
    with pytest.raises(InvalidStateTransition):
        svc.complete(declaration_id=decl.declaration_id)
    assert _remaining(svc, period) == Decimal("52.00")


def test_day_off_completion_has_no_deductions(svc, period):
    decl = svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 3), is_day_off=True)
    result = svc.complete(declaration_id=decl.declaration_id, absent_employee_hourly_rates={1: Decimal("40")})
    assert result.deductions == ()
    assert result.total_deductions == Decimal("0.00")


def test_closed_period_rejects_declarations(svc, period):
    svc.close_period(period_id=period.period_id)
    with pytest.raises(InvalidStateTransition):
        svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=4)
    with pytest.raises(InvalidStateTransition):
        svc.close_period(period_id=period.period_id)


def test_summary(svc, period):
    svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 3), is_day_off=True)
    d = svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=8)
    svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 15), is_day_off=False, hours=4)
    svc.complete(declaration_id=d.declaration_id)

    summary = svc.summary(period_id=period.period_id)
    assert summary.total_declarations == 3
    assert summary.days_off_count == 1
    assert summary.recovery_days_count == 2
    assert summary.scheduled_recovery_hours == Decimal("12.00")
    assert summary.completed_declarations == 1
    assert summary.hours_remaining == Decimal("48.00")


def test_concurrent_debit_cannot_overdraw(repo, svc, period):
    svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 8), is_day_off=False, hours=30)

    # Another writer takes 20h between our read and our write.
    def other_writer():
        p = repo.periods[period.period_id]
        repo.periods[period.period_id] = replace(p, hours_remaining=p.hours_remaining - 20, version=p.version + 1)

    repo.before_write = other_writer
    with pytest.raises(InsufficientRemainingHours):
        svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 15), is_day_off=False, hours=25)
    assert _remaining(svc, period) == Decimal("10.00")


def test_stale_version_without_shortage_is_a_conflict(repo, svc, period):
    def other_writer():
        p = repo.periods[period.period_id]
        repo.periods[period.period_id] = replace(p, version=p.version + 1)

    repo.before_write = other_writer
    with pytest.raises(ConflictError):
        svc.declare(period_id=period.period_id, recovery_date=date(2025, 3, 15), is_day_off=False, hours=5)
    assert _remaining(svc, period) == Decimal("60.00")

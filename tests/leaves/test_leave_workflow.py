from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from hr_timekeeping.core.enums import ApprovalStage, LeaveStatus
from hr_timekeeping.core.exceptions import (
    ConflictError,
    InvalidStateTransition,
    LeaveBoundsError,
    OverlappingLeaveError,
    ValidationError,
)
from hr_timekeeping.leaves.model import LeaveType
from hr_timekeeping.leaves.service import LeaveService
from hr_timekeeping.leaves.workflow import compute_total_days, parse_stage_chain

NOW = datetime(2025, 1, 2, 9, 0, 0)

ANNUAL = LeaveType(leave_type_id=1, code="annual", name="Annual leave", max_days_per_request=Decimal("20"))
SHORT_CHAIN = LeaveType(
    leave_type_id=2,
    code="exceptional",
    name="Exceptional leave",
    approval_stages=(ApprovalStage.N1, ApprovalStage.HR),
)
MANAGER_ONLY = LeaveType(
    leave_type_id=3,
    code="recovery",
    name="Recovery day",
    approval_stages=(ApprovalStage.N1,),
    deducts_balance=False,
)


class FakeLeaveRepo:
    def __init__(self, types=(ANNUAL, SHORT_CHAIN, MANAGER_ONLY)):
        self._types = {t.leave_type_id: t for t in types}
        self._next_id = 1
        self.rows = {}
        self.balances = {}
        self._lock = threading.Lock()
        self._barrier = None
        self._gated_reads = 0

    def gate_reads(self, parties):
        """Make the next ``parties`` reads wait for each other."""
        self._barrier = threading.Barrier(parties)
        self._gated_reads = parties

    def get_type(self, leave_type_id):
        return self._types.get(int(leave_type_id))

    def list_types(self):
        return list(self._types.values())

    def get_by_id(self, request_id):
        row = self.rows.get(int(request_id))
        with self._lock:
            gate = self._barrier if self._gated_reads > 0 else None
            self._gated_reads = max(self._gated_reads - 1, 0)
        if gate is not None:
            gate.wait(timeout=5)
        return row

    def list_for_employee(self, employee_id):
        return [r for r in self.rows.values() if r.employee_id == employee_id]

    def list_by_status(self, status):
        return [r for r in self.rows.values() if r.status == status]

    def find_overlapping(self, *, employee_id, start_date, end_date):
        for r in self.rows.values():
            if (
                r.employee_id == employee_id
                and r.status != LeaveStatus.REJECTED
                and r.start_date <= end_date
                and r.end_date >= start_date
            ):
                return r
        return None

    def create(self, request):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(request, request_id=rid)
        return rid

    def record_approval(self, *, request_id, stage, approval, expected_status, new_status, debit_days=None):
        with self._lock:
            current = self.rows[int(request_id)]
            if current.status != expected_status:
                return False
            updated = replace(current, status=new_status, **{stage.value: approval})
            if debit_days is not None and not current.balance_deducted:
                key = (current.employee_id, current.start_date.year)
                self.balances[key] = self.balances.get(key, Decimal("0")) - debit_days
                updated = replace(updated, balance_deducted=True)
            self.rows[int(request_id)] = updated
            return True

    def record_rejection(self, *, request_id, rejected_by, rejected_at, reason, expected_status):
        with self._lock:
            current = self.rows[int(request_id)]
            if current.status != expected_status:
                return False
            self.rows[int(request_id)] = replace(
                current,
                status=LeaveStatus.REJECTED,
                rejected_by=rejected_by,
                rejected_at=rejected_at,
                rejection_reason=reason,
            )
            return True

    def get_balance(self, *, employee_id, year):
        return self.balances.get((employee_id, year), Decimal("0"))


def _create(svc, leave_type=ANNUAL, **kwargs):
    args = dict(
        employee_id=5,
        leave_type_id=leave_type.leave_type_id,
        start_date=date(2025, 1, 6),
        end_date=date(2025, 1, 10),
    )
    args.update(kwargs)
    return svc.create(**args)


def test_total_days_inclusive():
    assert compute_total_days(date(2025, 1, 6), date(2025, 1, 10)) == Decimal("5")


def test_total_days_with_half_days():
    assert compute_total_days(date(2025, 1, 6), date(2025, 1, 10), start_half_day=True) == Decimal("4.5")
    assert compute_total_days(date(2025, 1, 6), date(2025, 1, 10), start_half_day=True, end_half_day=True) == Decimal("4")


def test_total_days_clamped_at_zero():
    assert compute_total_days(date(2025, 1, 6), date(2025, 1, 6), start_half_day=True, end_half_day=True) == Decimal("0")


def test_end_before_start_is_invalid():
    with pytest.raises(ValidationError):
        compute_total_days(date(2025, 1, 10), date(2025, 1, 6))


def test_stage_chain_parsing():
    assert parse_stage_chain("n1,n2,hr") == (ApprovalStage.N1, ApprovalStage.N2, ApprovalStage.HR)
    assert parse_stage_chain("N1, HR") == (ApprovalStage.N1, ApprovalStage.HR)
    with pytest.raises(ValidationError):
        parse_stage_chain("n2,hr")


def test_create_respects_bounds():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    with pytest.raises(LeaveBoundsError):
        _create(svc, end_date=date(2025, 2, 28))


def test_create_rejects_overlap():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    first = _create(svc)
    with pytest.raises(OverlappingLeaveError) as err:
        _create(svc, start_date=date(2025, 1, 9), end_date=date(2025, 1, 13))
    assert err.value.existing_request_id == first.request_id


def test_full_chain_reaches_approved_hr_and_deducts_once():
    repo = FakeLeaveRepo()
    svc = LeaveService(repo, clock=lambda: NOW)
    req = _create(svc, start_half_day=True)

    svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=10, comment="ok")
    svc.approve(request_id=req.request_id, stage=ApprovalStage.N2, approver_id=11, comment="ok")
    final = svc.approve(request_id=req.request_id, stage=ApprovalStage.HR, approver_id=12, comment="ok")

    assert final.status == LeaveStatus.APPROVED_HR
    assert final.n1.approver_id == 10 and final.n2.approver_id == 11 and final.hr.approver_id == 12
    assert svc.get_balance(employee_id=5, year=2025) == Decimal("-4.5")
    assert repo.rows[req.request_id].balance_deducted
    assert final.balance_deducted


def test_final_approval_lost_race_leaves_balance_untouched():
    repo = FakeLeaveRepo()
    svc = LeaveService(repo, clock=lambda: NOW)
    req = _create(svc, leave_type=SHORT_CHAIN)
    svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=10, comment="ok")

    # Someone else rejects between our read and our write.
    original = repo.record_approval

    def reject_first(**kwargs):
        rid = kwargs["request_id"]
        repo.rows[rid] = replace(repo.rows[rid], status=LeaveStatus.REJECTED)
        return original(**kwargs)

    repo.record_approval = reject_first
    with pytest.raises(InvalidStateTransition):
        svc.approve(request_id=req.request_id, stage=ApprovalStage.HR, approver_id=12, comment="ok")
    assert repo.rows[req.request_id].balance_deducted is False
    assert svc.get_balance(employee_id=5, year=2025) == Decimal("0")


def test_pending_cannot_jump_to_n2():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    req = _create(svc)
    with pytest.raises(InvalidStateTransition) as err:
        svc.approve(request_id=req.request_id, stage=ApprovalStage.N2, approver_id=11, comment="skip")
    assert err.value.current_status == "pending"


def test_approve_requires_comment():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    req = _create(svc)
    with pytest.raises(ValidationError):
        svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=10, comment="  ")


def test_short_chain_ends_in_approved():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    req = _create(svc, leave_type=SHORT_CHAIN)
    svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=10, comment="ok")
    with pytest.raises(InvalidStateTransition):
        svc.approve(request_id=req.request_id, stage=ApprovalStage.N2, approver_id=11, comment="ok")
    final = svc.approve(request_id=req.request_id, stage=ApprovalStage.HR, approver_id=12, comment="ok")
    assert final.status == LeaveStatus.APPROVED


def test_manager_only_chain_without_balance_deduction():
    repo = FakeLeaveRepo()
    svc = LeaveService(repo, clock=lambda: NOW)
    req = _create(svc, leave_type=MANAGER_ONLY)
    final = svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=10, comment="ok")
    assert final.status == LeaveStatus.APPROVED
    assert not repo.get_by_id(req.request_id).balance_deducted


def test_reject_keeps_prior_approvals_and_is_terminal():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    req = _create(svc)
    svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=10, comment="ok")
    rejected = svc.reject(request_id=req.request_id, approver_id=11, reason="Team understaffed")

    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.approval_for(ApprovalStage.N1).approver_id == 10
    assert rejected.approval_for(ApprovalStage.N2) is None
    assert rejected.rejection_reason == "Team understaffed"
    with pytest.raises(InvalidStateTransition):
        svc.reject(request_id=req.request_id, approver_id=11, reason="again")
    with pytest.raises(InvalidStateTransition):
        svc.approve(request_id=req.request_id, stage=ApprovalStage.N2, approver_id=11, comment="ok")


def test_reject_requires_reason():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    req = _create(svc)
    with pytest.raises(ValidationError):
        svc.reject(request_id=req.request_id, approver_id=11, reason="")


def test_rejected_request_does_not_block_new_one():
    svc = LeaveService(FakeLeaveRepo(), clock=lambda: NOW)
    req = _create(svc)
    svc.reject(request_id=req.request_id, approver_id=11, reason="Dates changed")
    assert _create(svc).status == LeaveStatus.PENDING


def test_concurrent_n1_approvals_only_one_wins():
    repo = FakeLeaveRepo()
    svc = LeaveService(repo, clock=lambda: NOW)
    req = _create(svc)

    repo.gate_reads(2)
    results = []

    def approve(approver_id):
        try:
            svc.approve(request_id=req.request_id, stage=ApprovalStage.N1, approver_id=approver_id, comment="ok")
            results.append("ok")
        except (InvalidStateTransition, ConflictError) as e:
            results.append(type(e).__name__)

    threads = [threading.Thread(target=approve, args=(aid,)) for aid in (10, 20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert sorted(results) == ["InvalidStateTransition", "ok"]
    final = repo.get_by_id(req.request_id)
    assert final.status == LeaveStatus.APPROVED_N1
    assert final.n1.approver_id in (10, 20)

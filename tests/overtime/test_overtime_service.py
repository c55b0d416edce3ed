from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from hr_timekeeping.core.enums import OvertimePriority, OvertimeStatus
from hr_timekeeping.core.exceptions import InvalidStateTransition, InvalidTimeRange, NotFoundError, ValidationError
from hr_timekeeping.overtime.service import OvertimeService, compute_estimated_hours

NOW = datetime(2025, 3, 3, 8, 0, 0)


class FakeOvertimeRepo:
    def __init__(self):
        self._next_id = 1
        self.rows = {}

    def get_by_id(self, request_id):
        return self.rows.get(int(request_id))

    def create(self, request):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = replace(request, request_id=rid)
        return rid

    def decide(self, *, request_id, new_status, decided_by, decided_at, comment):
        req = self.rows.get(int(request_id))
        if not req or req.status != OvertimeStatus.PENDING:
            return False
        self.rows[int(request_id)] = replace(
            req, status=new_status, decided_by=decided_by, decided_at=decided_at, decision_comment=comment
        )
        return True

    def list(self, *, status=None, year=None, month=None, employee_id=None):
        out = list(self.rows.values())
        if status is not None:
            out = [r for r in out if r.status == status]
        if year is not None:
            out = [r for r in out if r.request_date.year == year]
        if month is not None:
            out = [r for r in out if r.request_date.month == month]
        return out


def _create(svc, **kwargs):
    args = dict(employee_id=4, request_date=date(2025, 3, 5), start_time=time(18, 0), end_time=time(20, 30))
    args.update(kwargs)
    return svc.create(**args)


def test_estimated_hours_rounded():
    assert compute_estimated_hours(time(18, 0), time(20, 30)) == Decimal("2.50")
    assert compute_estimated_hours(time(18, 0), time(18, 20)) == Decimal("0.33")


def test_end_before_start_fails():
    with pytest.raises(InvalidTimeRange):
        compute_estimated_hours(time(20, 0), time(18, 0))


def test_create_is_pending_with_fixed_hours():
    svc = OvertimeService(FakeOvertimeRepo(), clock=lambda: NOW)
    req = _create(svc, priority=OvertimePriority.URGENT, project_code=" PRJ-7 ")
    assert req.status == OvertimeStatus.PENDING
    assert req.estimated_hours == Decimal("2.50")
    assert req.project_code == "PRJ-7"


def test_approve_keeps_estimated_hours():
    repo = FakeOvertimeRepo()
    svc = OvertimeService(repo, clock=lambda: NOW)
    req = _create(svc)
    approved = svc.approve(request_id=req.request_id, approver_id=9, comment="Release night")
    assert approved.status == OvertimeStatus.APPROVED
    assert approved.estimated_hours == Decimal("2.50")
    assert repo.get_by_id(req.request_id).decided_by == 9


@pytest.mark.parametrize("action", ["approve", "reject"])
def test_decision_requires_text(action):
    svc = OvertimeService(FakeOvertimeRepo(), clock=lambda: NOW)
    req = _create(svc)
    with pytest.raises(ValidationError):
        if action == "approve":
            svc.approve(request_id=req.request_id, approver_id=9, comment="")
        else:
            svc.reject(request_id=req.request_id, approver_id=9, reason=" ")


def test_outcomes_are_final():
    svc = OvertimeService(FakeOvertimeRepo(), clock=lambda: NOW)
    req = _create(svc)
    svc.reject(request_id=req.request_id, approver_id=9, reason="Budget")
    with pytest.raises(InvalidStateTransition):
        svc.approve(request_id=req.request_id, approver_id=9, comment="Changed my mind")
    with pytest.raises(InvalidStateTransition):
        svc.cancel(request_id=req.request_id, actor_id=4)


def test_cancel_from_pending_without_reason():
    svc = OvertimeService(FakeOvertimeRepo(), clock=lambda: NOW)
    req = _create(svc)
    cancelled = svc.cancel(request_id=req.request_id, actor_id=4)
    assert cancelled.status == OvertimeStatus.CANCELLED
    assert cancelled.decision_comment is None


def test_unknown_request():
    with pytest.raises(NotFoundError):
        OvertimeService(FakeOvertimeRepo()).approve(request_id=99, approver_id=1, comment="ok")


def test_list_filters_by_month():
    svc = OvertimeService(FakeOvertimeRepo(), clock=lambda: NOW)
    _create(svc)
    _create(svc, request_date=date(2025, 4, 2))
    assert len(svc.list(year=2025, month=3)) == 1
    assert len(svc.list(status=OvertimeStatus.PENDING)) == 2

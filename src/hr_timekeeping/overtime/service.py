from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import minutes_between, now_utc
from ..common.validators import require_non_empty
from ..core import constants
from ..core.enums import OvertimePriority, OvertimeRequestType, OvertimeStatus
from ..core.exceptions import ConflictError, InvalidStateTransition, InvalidTimeRange, NotFoundError
from .model import OvertimeRequest
from .repository import OvertimeRepository

logger = logging.getLogger(__name__)


def compute_estimated_hours(start: time, end: time) -> Decimal:
    minutes = minutes_between(start, end)
    if minutes <= 0:
        raise InvalidTimeRange("Overtime end time must be after start time")
    return (Decimal(minutes) / Decimal(60)).quantize(constants.HOURS_QUANTUM, rounding=ROUND_HALF_UP)


class OvertimeService:
    """pending -> approved | rejected | cancelled; every outcome is final."""

    def __init__(self, overtime: OvertimeRepository, *, clock: Callable[[], datetime] = now_utc):
        self._overtime = overtime
        self._clock = clock

    def create(
        self,
        *,
        employee_id: int,
        request_date: date,
        start_time: time,
        end_time: time,
        reason: Optional[str] = None,
        priority: OvertimePriority = OvertimePriority.NORMAL,
        request_type: OvertimeRequestType = OvertimeRequestType.PLANNED,
        project_code: Optional[str] = None,
        requested_by: Optional[int] = None,
    ) -> OvertimeRequest:
        hours = compute_estimated_hours(start_time, end_time)
        request = OvertimeRequest(
            request_id=0,
            employee_id=int(employee_id),
            request_date=request_date,
            start_time=start_time,
            end_time=end_time,
            estimated_hours=hours,
            reason=(reason or "").strip() or None,
            priority=priority,
            request_type=request_type,
            project_code=(project_code or "").strip() or None,
            requested_by=requested_by,
            created_at=self._clock(),
        )
        new_id = self._overtime.create(request)
        logger.info("Overtime request %s created for employee %s (%sh)", new_id, employee_id, hours)
        return replace(request, request_id=new_id)

    def approve(self, *, request_id: int, approver_id: int, comment: str) -> OvertimeRequest:
        text = require_non_empty(comment, "Approval comment")
        return self._decide(request_id, OvertimeStatus.APPROVED, actor_id=approver_id, comment=text)

    def reject(self, *, request_id: int, approver_id: int, reason: str) -> OvertimeRequest:
        text = require_non_empty(reason, "Rejection reason")
        return self._decide(request_id, OvertimeStatus.REJECTED, actor_id=approver_id, comment=text)

    def cancel(self, *, request_id: int, actor_id: int, reason: Optional[str] = None) -> OvertimeRequest:
        return self._decide(request_id, OvertimeStatus.CANCELLED, actor_id=actor_id, comment=(reason or "").strip() or None)

    def get(self, request_id: int) -> OvertimeRequest:
        request = self._overtime.get_by_id(int(request_id))
        if request is None:
            raise NotFoundError("OvertimeRequest", request_id)
        return request

    def list(
        self,
        *,
        status: Optional[OvertimeStatus] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[OvertimeRequest]:
        return self._overtime.list(status=status, year=year, month=month, employee_id=employee_id)

    def _decide(
        self,
        request_id: int,
        new_status: OvertimeStatus,
        *,
        actor_id: int,
        comment: Optional[str],
    ) -> OvertimeRequest:
        request = self.get(request_id)
        if request.status != OvertimeStatus.PENDING:
            raise InvalidStateTransition(request.status.value, new_status.value)

        decided_at = self._clock()
        ok = self._overtime.decide(
            request_id=request.request_id,
            new_status=new_status,
            decided_by=int(actor_id),
            decided_at=decided_at,
            comment=comment,
        )
        if not ok:
            latest = self._overtime.get_by_id(request.request_id)
            logger.warning("Overtime request %s: concurrent decision lost", request.request_id)
            if latest is not None and latest.status != OvertimeStatus.PENDING:
                raise InvalidStateTransition(latest.status.value, new_status.value)
            raise ConflictError("OvertimeRequest", request.request_id)

        logger.info("Overtime request %s: pending -> %s by %s", request.request_id, new_status.value, actor_id)
        return replace(
            request,
            status=new_status,
            decided_by=int(actor_id),
            decided_at=decided_at,
            decision_comment=comment,
        )

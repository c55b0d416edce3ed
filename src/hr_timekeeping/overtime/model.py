from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from ..core.enums import OvertimePriority, OvertimeRequestType, OvertimeStatus


@dataclass(frozen=True)
class OvertimeRequest:
    """Single-approver overtime request; ``estimated_hours`` is fixed at creation."""

    request_id: int
    employee_id: int
    request_date: date
    start_time: time
    end_time: time
    estimated_hours: Decimal
    status: OvertimeStatus = OvertimeStatus.PENDING
    reason: Optional[str] = None
    priority: OvertimePriority = OvertimePriority.NORMAL
    request_type: OvertimeRequestType = OvertimeRequestType.PLANNED
    project_code: Optional[str] = None
    requested_by: Optional[int] = None
    created_at: Optional[datetime] = None
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    decision_comment: Optional[str] = None

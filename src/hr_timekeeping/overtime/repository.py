from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import OvertimeStatus
from .model import OvertimeRequest


class OvertimeRepository(Protocol):
    def get_by_id(self, request_id: int) -> Optional[OvertimeRequest]:
        raise NotImplementedError

    def create(self, request: OvertimeRequest) -> int:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        new_status: OvertimeStatus,
        decided_by: Optional[int],
        decided_at: datetime,
        comment: Optional[str],
    ) -> bool:
        """Move a pending request to ``new_status``; False if it is no longer pending."""

        raise NotImplementedError

    def list(
        self,
        *,
        status: Optional[OvertimeStatus] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> Sequence[OvertimeRequest]:
        raise NotImplementedError

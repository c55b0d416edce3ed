from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import WorkSchedule


class ScheduleRepository(Protocol):
    def get_by_id(self, schedule_id: int) -> Optional[WorkSchedule]:
        raise NotImplementedError

    def get_active(self) -> Optional[WorkSchedule]:
        raise NotImplementedError

    def list_all(self) -> Sequence[WorkSchedule]:
        raise NotImplementedError

    def create(self, schedule: WorkSchedule) -> int:
        """Insert an inactive schedule and return its id."""

        raise NotImplementedError

    def activate_exclusively(self, *, schedule_id: int) -> bool:
        """Deactivate every other schedule and activate this one, atomically.

        Returns False when the schedule does not exist (nothing changes).
        """

        raise NotImplementedError

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from .model import WorkSchedule
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(self, schedules: ScheduleRepository):
        self._schedules = schedules

    def create(self, schedule: WorkSchedule) -> int:
        require_non_empty(schedule.name, "Schedule name")

        for hours in schedule.days:
            if hours is not None and hours.end <= hours.start:
                raise ValidationError("Scheduled end must be after scheduled start")
        if (schedule.break_start is None) != (schedule.break_end is None):
            raise ValidationError("Break start and break end must be set together")
        if schedule.break_start is not None and schedule.break_end <= schedule.break_start:
            raise ValidationError("Break end must be after break start")
        if schedule.late_tolerance_minutes < 0 or schedule.early_leave_tolerance_minutes < 0:
            raise ValidationError("Tolerances cannot be negative")

        # New schedules start inactive; activation is an explicit step.
        return self._schedules.create(replace(schedule, is_active=False))

    def activate(self, *, schedule_id: int) -> WorkSchedule:
        if not self._schedules.activate_exclusively(schedule_id=int(schedule_id)):
            raise NotFoundError("WorkSchedule", schedule_id)
        logger.info("Activated work schedule %s", schedule_id)
        return self._schedules.get_by_id(int(schedule_id))

    def get_applicable(self) -> Optional[WorkSchedule]:
        """The single active schedule, or None when nothing is active."""

        return self._schedules.get_active()

    def list_all(self) -> Sequence[WorkSchedule]:
        return self._schedules.list_all()

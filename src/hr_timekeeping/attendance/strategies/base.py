from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from ...core.enums import AttendanceStatus
from ...core.settings import EngineSettings
from ...schedules.model import WorkSchedule
from ..model import DayContext


@dataclass(frozen=True)
class DayInput:
    work_date: date
    check_in: Optional[time]
    check_out: Optional[time]
    schedule: Optional[WorkSchedule]
    context: DayContext


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None
    late_minutes: int = 0
    early_leave_minutes: int = 0
    overtime_minutes: int = 0
    hours_to_recover: Optional[int] = None


class DayStatusStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide a day's status."""

    @abstractmethod
    def decide(self, day: DayInput, *, settings: EngineSettings) -> StatusDecision:
        raise NotImplementedError

from dataclasses import replace
from datetime import date, time

import pytest

from hr_timekeeping.core.exceptions import NotFoundError, ValidationError
from hr_timekeeping.schedules.model import DayHours, WorkSchedule
from hr_timekeeping.schedules.service import ScheduleService

WEEKDAYS = (DayHours(time(9, 0), time(18, 0)),) * 5 + (None, None)


class FakeScheduleRepo:
    def __init__(self):
        self._next_id = 1
        self.rows = {}

    def get_by_id(self, schedule_id):
        return self.rows.get(schedule_id)

    def get_active(self):
        active = [s for s in self.rows.values() if s.is_active]
        return active[0] if active else None

    def list_all(self):
        return list(self.rows.values())

    def create(self, schedule):
        sid = self._next_id
        self._next_id += 1
        self.rows[sid] = replace(schedule, schedule_id=sid)
        return sid

    def activate_exclusively(self, *, schedule_id):
        if schedule_id not in self.rows:
            return False
        for sid, s in self.rows.items():
            self.rows[sid] = replace(s, is_active=(sid == schedule_id))
        return True


def _schedule(**kwargs):
    args = dict(schedule_id=0, name="Standard", days=WEEKDAYS, break_start=time(13, 0), break_end=time(14, 0))
    args.update(kwargs)
    return WorkSchedule(**args)


def test_schedule_shape():
    s = _schedule()
    assert s.is_working_day(date(2025, 1, 6))
    assert not s.is_working_day(date(2025, 1, 11))
    assert s.break_minutes == 60
    assert s.scheduled_net_minutes(date(2025, 1, 6)) == 480
    assert s.scheduled_net_minutes(date(2025, 1, 12)) is None


def test_created_schedule_starts_inactive():
    repo = FakeScheduleRepo()
    sid = ScheduleService(repo).create(_schedule(is_active=True))
    assert not repo.get_by_id(sid).is_active
    assert ScheduleService(repo).get_applicable() is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "  "},
        {"days": (DayHours(time(18, 0), time(9, 0)),) + (None,) * 6},
        {"break_end": None},
        {"break_start": time(14, 0), "break_end": time(13, 0)},
        {"late_tolerance_minutes": -5},
    ],
)
def test_invalid_schedules_rejected(kwargs):
    with pytest.raises(ValidationError):
        ScheduleService(FakeScheduleRepo()).create(_schedule(**kwargs))


def test_activation_is_exclusive():
    repo = FakeScheduleRepo()
    svc = ScheduleService(repo)
    first = svc.create(_schedule(name="Winter"))
    second = svc.create(_schedule(name="Summer"))

    svc.activate(schedule_id=first)
    activated = svc.activate(schedule_id=second)

    assert activated.is_active
    assert [s.name for s in svc.list_all() if s.is_active] == ["Summer"]
    assert svc.get_applicable().schedule_id == second


def test_activate_unknown_schedule():
    with pytest.raises(NotFoundError):
        ScheduleService(FakeScheduleRepo()).activate(schedule_id=42)

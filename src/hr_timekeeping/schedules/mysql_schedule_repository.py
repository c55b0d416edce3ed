from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import WEEKDAY_NAMES, DayHours, WorkSchedule
from .repository import ScheduleRepository

_DAY_COLUMNS = ", ".join(f"{d}_start, {d}_end" for d in WEEKDAY_NAMES)
_SELECT = f"""
    SELECT schedule_id, name, {_DAY_COLUMNS},
           break_start, break_end, late_tolerance_minutes, early_leave_tolerance_minutes,
           min_hours_for_half_day, is_default, is_active
    FROM work_schedules
"""


def _row_to_schedule(r: dict) -> WorkSchedule:
    days = []
    for name in WEEKDAY_NAMES:
        start = normalize_mysql_time(r.get(f"{name}_start"))
        end = normalize_mysql_time(r.get(f"{name}_end"))
        days.append(DayHours(start, end) if start and end else None)
    return WorkSchedule(
        schedule_id=int(r["schedule_id"]),
        name=r["name"],
        days=tuple(days),
        break_start=normalize_mysql_time(r.get("break_start")),
        break_end=normalize_mysql_time(r.get("break_end")),
        late_tolerance_minutes=int(r["late_tolerance_minutes"]),
        early_leave_tolerance_minutes=int(r["early_leave_tolerance_minutes"]),
        min_hours_for_half_day=as_decimal(r.get("min_hours_for_half_day") or Decimal("4")),
        is_default=bool(r["is_default"]),
        is_active=bool(r["is_active"]),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, schedule_id: int) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE schedule_id=%s", (int(schedule_id),))
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def get_active(self) -> Optional[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE is_active=1 ORDER BY schedule_id LIMIT 1")
            r = fetchone(cur)
            return _row_to_schedule(r) if r else None

    def list_all(self) -> Sequence[WorkSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY name")
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def create(self, schedule: WorkSchedule) -> int:
        day_values: list[object] = []
        for hours in schedule.days:
            day_values.extend([hours.start if hours else None, hours.end if hours else None])

        placeholders = ",".join(["%s"] * (len(day_values) + 7))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO work_schedules(
                    name, {_DAY_COLUMNS}, break_start, break_end,
                    late_tolerance_minutes, early_leave_tolerance_minutes,
                    min_hours_for_half_day, is_default, is_active
                )
                VALUES(%s,{placeholders})
                """,
                (
                    schedule.name,
                    *day_values,
                    schedule.break_start,
                    schedule.break_end,
                    int(schedule.late_tolerance_minutes),
                    int(schedule.early_leave_tolerance_minutes),
                    schedule.min_hours_for_half_day,
                    int(schedule.is_default),
                    0,
                ),
            )
            return int(cur.lastrowid)

    def activate_exclusively(self, *, schedule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock every schedule row so two activations serialize.
            cur.execute("SELECT schedule_id FROM work_schedules FOR UPDATE")
            ids = {int(r["schedule_id"]) for r in fetchall(cur)}
            if int(schedule_id) not in ids:
                return False
            cur.execute("UPDATE work_schedules SET is_active=0 WHERE schedule_id<>%s", (int(schedule_id),))
            cur.execute("UPDATE work_schedules SET is_active=1 WHERE schedule_id=%s", (int(schedule_id),))
            return True

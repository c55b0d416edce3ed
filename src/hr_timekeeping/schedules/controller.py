from __future__ import annotations

from decimal import Decimal

from flask import Flask

from ..common.datetime_utils import parse_hhmm
from ..common.http import json_body, json_endpoint, optional_decimal, optional_int
from ..core.exceptions import ValidationError
from ..container import Container
from .model import WEEKDAY_NAMES, DayHours, WorkSchedule


def _day_hours(data: dict, day: str):
    start = parse_hhmm(data.get(f"{day}_start"))
    end = parse_hhmm(data.get(f"{day}_end"))
    if start is None and end is None:
        return None
    if start is None or end is None:
        raise ValidationError(f"{day}: start and end must be set together")
    return DayHours(start, end)


def register(app: Flask, container: Container) -> None:
    service = container.schedule_service
    settings = container.settings

    @app.route("/schedules", methods=["GET"], endpoint="schedules_list")
    @json_endpoint
    def schedules_list():
        return service.list_all()

    @app.route("/schedules/active", methods=["GET"], endpoint="schedules_active")
    @json_endpoint
    def schedules_active():
        return service.get_applicable()

    @app.route("/schedules", methods=["POST"], endpoint="schedules_create")
    @json_endpoint
    def schedules_create():
        data = json_body()
        late = optional_int(data.get("late_tolerance_minutes"), "late_tolerance_minutes")
        early = optional_int(data.get("early_leave_tolerance_minutes"), "early_leave_tolerance_minutes")
        half_day = optional_decimal(data.get("min_hours_for_half_day"), "min_hours_for_half_day")
        schedule = WorkSchedule(
            schedule_id=0,
            name=data.get("name") or "",
            days=tuple(_day_hours(data, d) for d in WEEKDAY_NAMES),
            break_start=parse_hhmm(data.get("break_start")),
            break_end=parse_hhmm(data.get("break_end")),
            late_tolerance_minutes=late if late is not None else settings.default_late_tolerance_minutes,
            early_leave_tolerance_minutes=(
                early if early is not None else settings.default_early_leave_tolerance_minutes
            ),
            min_hours_for_half_day=half_day if half_day is not None else Decimal("4"),
            is_default=bool(data.get("is_default")),
        )
        new_id = service.create(schedule)
        return {"schedule_id": new_id}, 201

    @app.route("/schedules/<int:schedule_id>/activate", methods=["PUT"], endpoint="schedules_activate")
    @json_endpoint
    def schedules_activate(schedule_id: int):
        return service.activate(schedule_id=schedule_id)

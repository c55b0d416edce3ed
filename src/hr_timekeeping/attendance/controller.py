from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.http import json_body, json_endpoint, optional_int, parse_enum, require_int
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..container import Container


def _status(value):
    return parse_enum(AttendanceStatus, value, "attendance status")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    @json_endpoint
    def attendance_get(attendance_id: int):
        return service.get_record(attendance_id)

    @app.route("/attendance/anomalies", methods=["GET"], endpoint="attendance_anomalies")
    @json_endpoint
    def attendance_anomalies():
        limit = optional_int(request.args.get("limit"), "limit") or 200
        return service.list_unresolved_anomalies(limit=limit)

    @app.route("/attendance/clock", methods=["POST"], endpoint="attendance_clock")
    @json_endpoint
    def attendance_clock():
        data = json_body()
        record = service.ingest_clock(
            employee_id=require_int(data, "employee_id"),
            work_date=parse_iso_date(data.get("work_date")),
            check_in=parse_hhmm(data.get("check_in")),
            check_out=parse_hhmm(data.get("check_out")),
        )
        return record, 201

    @app.route("/attendance/close-day", methods=["POST"], endpoint="attendance_close_day")
    @json_endpoint
    def attendance_close_day():
        data = json_body()
        return service.close_day(work_date=parse_iso_date(data.get("work_date")))

    @app.route("/attendance/declare", methods=["POST"], endpoint="attendance_declare")
    @json_endpoint
    def attendance_declare():
        data = json_body()
        record = service.declare(
            employee_id=require_int(data, "employee_id"),
            work_date=parse_iso_date(data.get("work_date")),
            check_in=parse_hhmm(data.get("check_in")),
            check_out=parse_hhmm(data.get("check_out")),
            status=_status(data.get("status")),
            notes=data.get("notes"),
            actor_id=require_int(data, "actor_id"),
        )
        return record, 201

    @app.route("/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_edit")
    @json_endpoint
    def attendance_edit(attendance_id: int):
        data = json_body()
        return service.admin_edit(
            attendance_id=attendance_id,
            check_in=parse_hhmm(data.get("check_in")),
            check_out=parse_hhmm(data.get("check_out")),
            status=_status(data.get("status")),
            reason=data.get("reason"),
            actor_id=require_int(data, "actor_id"),
            expected_version=optional_int(data.get("version"), "version"),
        )

    @app.route("/attendance/<int:attendance_id>/resolve", methods=["PUT"], endpoint="attendance_resolve")
    @json_endpoint
    def attendance_resolve(attendance_id: int):
        data = json_body()
        status = _status(data.get("corrected_status"))
        if status is None:
            raise ValidationError("corrected_status is required")
        return service.resolve(
            attendance_id=attendance_id,
            corrected_check_in=parse_hhmm(data.get("corrected_check_in")),
            corrected_check_out=parse_hhmm(data.get("corrected_check_out")),
            corrected_status=status,
            resolution_notes=data.get("resolution_notes"),
            resolver_id=require_int(data, "resolver_id"),
            expected_version=optional_int(data.get("version"), "version"),
        )

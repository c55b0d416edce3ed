from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.http import json_body, json_endpoint, optional_int, parse_enum, require_int
from ..core.enums import OvertimePriority, OvertimeRequestType, OvertimeStatus
from ..core.exceptions import ValidationError
from ..container import Container


def _required_time(data: dict, key: str):
    value = parse_hhmm(data.get(key))
    if value is None:
        raise ValidationError(f"{key} is required")
    return value


def register(app: Flask, container: Container) -> None:
    service = container.overtime_service

    @app.route("/overtime-requests", methods=["GET"], endpoint="overtime_list")
    @json_endpoint
    def overtime_list():
        status = request.args.get("status")
        year = request.args.get("year")
        month = request.args.get("month")
        employee_id = request.args.get("employee_id")
        return service.list(
            status=parse_enum(OvertimeStatus, status, "overtime status"),
            year=optional_int(year, "year"),
            month=optional_int(month, "month"),
            employee_id=optional_int(employee_id, "employee_id"),
        )

    @app.route("/overtime-requests", methods=["POST"], endpoint="overtime_create")
    @json_endpoint
    def overtime_create():
        data = json_body()
        created = service.create(
            employee_id=require_int(data, "employee_id"),
            request_date=parse_iso_date(data.get("request_date")),
            start_time=_required_time(data, "start_time"),
            end_time=_required_time(data, "end_time"),
            reason=data.get("reason"),
            priority=parse_enum(OvertimePriority, data.get("priority"), "priority") or OvertimePriority.NORMAL,
            request_type=(
                parse_enum(OvertimeRequestType, data.get("request_type"), "request type") or OvertimeRequestType.PLANNED
            ),
            project_code=data.get("project_code"),
            requested_by=optional_int(data.get("requested_by"), "requested_by"),
        )
        return created, 201

    @app.route("/overtime-requests/<int:request_id>", methods=["GET"], endpoint="overtime_get")
    @json_endpoint
    def overtime_get(request_id: int):
        return service.get(request_id)

    @app.route("/overtime-requests/<int:request_id>/approve", methods=["PUT"], endpoint="overtime_approve")
    @json_endpoint
    def overtime_approve(request_id: int):
        data = json_body()
        return service.approve(
            request_id=request_id,
            approver_id=require_int(data, "approver_id"),
            comment=data.get("comment"),
        )

    @app.route("/overtime-requests/<int:request_id>/reject", methods=["PUT"], endpoint="overtime_reject")
    @json_endpoint
    def overtime_reject(request_id: int):
        data = json_body()
        return service.reject(
            request_id=request_id,
            approver_id=require_int(data, "approver_id"),
            reason=data.get("reason"),
        )

    @app.route("/overtime-requests/<int:request_id>/cancel", methods=["PUT"], endpoint="overtime_cancel")
    @json_endpoint
    def overtime_cancel(request_id: int):
        data = json_body()
        return service.cancel(
            request_id=request_id,
            actor_id=require_int(data, "actor_id"),
            reason=data.get("reason"),
        )

from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, json_endpoint, optional_decimal, optional_int, parse_enum, require_int
from ..core.enums import RecoveryPeriodStatus
from ..core.exceptions import ValidationError
from ..container import Container


def _hourly_rates(raw) -> dict:
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError("absent_employee_hourly_rates must map employee ids to rates")
    rates = {}
    for key, value in raw.items():
        employee_id = optional_int(key, "employee id")
        rate = optional_decimal(value, "hourly rate")
        if employee_id is None or rate is None:
            raise ValidationError("absent_employee_hourly_rates must map employee ids to rates")
        rates[employee_id] = rate
    return rates


def register(app: Flask, container: Container) -> None:
    service = container.recovery_service

    @app.route("/recovery-periods", methods=["GET"], endpoint="recovery_periods_list")
    @json_endpoint
    def recovery_periods_list():
        status = request.args.get("status")
        return service.list_periods(status=parse_enum(RecoveryPeriodStatus, status, "period status"))

    @app.route("/recovery-periods", methods=["POST"], endpoint="recovery_periods_create")
    @json_endpoint
    def recovery_periods_create():
        data = json_body()
        created = service.create_period(
            name=data.get("name"),
            start_date=parse_iso_date(data.get("start_date")),
            end_date=parse_iso_date(data.get("end_date")),
            total_hours_to_recover=data.get("total_hours_to_recover"),
            department_id=optional_int(data.get("department_id"), "department_id"),
            segment_id=optional_int(data.get("segment_id"), "segment_id"),
            centre_id=optional_int(data.get("centre_id"), "centre_id"),
            applies_to_all=bool(data.get("applies_to_all")),
        )
        return created, 201

    @app.route("/recovery-periods/<int:period_id>", methods=["GET"], endpoint="recovery_periods_get")
    @json_endpoint
    def recovery_periods_get(period_id: int):
        return service.get_period(period_id)

    @app.route("/recovery-periods/<int:period_id>/close", methods=["PUT"], endpoint="recovery_periods_close")
    @json_endpoint
    def recovery_periods_close(period_id: int):
        return service.close_period(period_id=period_id)

    @app.route("/recovery-periods/<int:period_id>/summary", methods=["GET"], endpoint="recovery_periods_summary")
    @json_endpoint
    def recovery_periods_summary(period_id: int):
        return service.summary(period_id=period_id)

    @app.route("/recovery-periods/<int:period_id>/declarations", methods=["GET"], endpoint="recovery_declarations_list")
    @json_endpoint
    def recovery_declarations_list(period_id: int):
        return service.list_declarations(period_id=period_id)

    @app.route("/recovery-declarations", methods=["POST"], endpoint="recovery_declarations_create")
    @json_endpoint
    def recovery_declarations_create():
        data = json_body()
        created = service.declare(
            period_id=require_int(data, "period_id"),
            recovery_date=parse_iso_date(data.get("recovery_date")),
            is_day_off=bool(data.get("is_day_off")),
            hours=data.get("hours_to_recover"),
            notes=data.get("notes"),
            department_id=optional_int(data.get("department_id"), "department_id"),
            segment_id=optional_int(data.get("segment_id"), "segment_id"),
            centre_id=optional_int(data.get("centre_id"), "centre_id"),
        )
        return created, 201

    @app.route("/recovery-declarations/<int:declaration_id>", methods=["GET"], endpoint="recovery_declarations_get")
    @json_endpoint
    def recovery_declarations_get(declaration_id: int):
        return service.get_declaration(declaration_id)

    @app.route("/recovery-declarations/<int:declaration_id>", methods=["PUT"], endpoint="recovery_declarations_update")
    @json_endpoint
    def recovery_declarations_update(declaration_id: int):
        data = json_body()
        new_date = data.get("recovery_date")
        return service.update(
            declaration_id=declaration_id,
            hours=data.get("hours_to_recover"),
            recovery_date=parse_iso_date(new_date) if new_date else None,
            notes=data.get("notes"),
        )

    @app.route("/recovery-declarations/<int:declaration_id>", methods=["DELETE"], endpoint="recovery_declarations_delete")
    @json_endpoint
    def recovery_declarations_delete(declaration_id: int):
        service.delete(declaration_id=declaration_id)
        return {"declaration_id": declaration_id, "deleted": True}

    @app.route(
        "/recovery-declarations/<int:declaration_id>/complete",
        methods=["POST"],
        endpoint="recovery_declarations_complete",
    )
    @json_endpoint
    def recovery_declarations_complete(declaration_id: int):
        data = json_body()
        rates = _hourly_rates(data.get("absent_employee_hourly_rates"))
        return service.complete(declaration_id=declaration_id, absent_employee_hourly_rates=rates)

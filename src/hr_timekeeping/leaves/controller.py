from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, json_endpoint, optional_int, require_int
from ..core.enums import ApprovalStage
from ..core.exceptions import ValidationError
from ..container import Container


def _stage(value) -> ApprovalStage:
    try:
        return ApprovalStage(str(value or "").lower())
    except ValueError:
        raise ValidationError("stage must be one of n1, n2, hr")


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.route("/leave-types", methods=["GET"], endpoint="leave_types")
    @json_endpoint
    def leave_types():
        return service.list_types()

    @app.route("/leave-requests", methods=["GET"], endpoint="leave_requests_list")
    @json_endpoint
    def leave_requests_list():
        employee_id = request.args.get("employee_id")
        if employee_id:
            return service.list_for_employee(optional_int(employee_id, "employee_id"))
        return service.list_pending()

    @app.route("/leave-requests", methods=["POST"], endpoint="leave_requests_create")
    @json_endpoint
    def leave_requests_create():
        data = json_body()
        created = service.create(
            employee_id=require_int(data, "employee_id"),
            leave_type_id=require_int(data, "leave_type_id"),
            start_date=parse_iso_date(data.get("start_date")),
            end_date=parse_iso_date(data.get("end_date")),
            start_half_day=bool(data.get("start_half_day")),
            end_half_day=bool(data.get("end_half_day")),
            reason=data.get("reason"),
        )
        return created, 201

    @app.route("/leave-requests/<int:request_id>", methods=["GET"], endpoint="leave_requests_get")
    @json_endpoint
    def leave_requests_get(request_id: int):
        return service.get(request_id)

    @app.route("/leave-requests/<int:request_id>/approve", methods=["PUT"], endpoint="leave_requests_approve")
    @json_endpoint
    def leave_requests_approve(request_id: int):
        data = json_body()
        return service.approve(
            request_id=request_id,
            stage=_stage(data.get("stage")),
            approver_id=require_int(data, "approver_id"),
            comment=data.get("comment"),
        )

    @app.route("/leave-requests/<int:request_id>/reject", methods=["PUT"], endpoint="leave_requests_reject")
    @json_endpoint
    def leave_requests_reject(request_id: int):
        data = json_body()
        return service.reject(
            request_id=request_id,
            approver_id=require_int(data, "approver_id"),
            reason=data.get("reason"),
        )

    @app.route("/leave-balances/<int:employee_id>/<int:year>", methods=["GET"], endpoint="leave_balance")
    @json_endpoint
    def leave_balance(employee_id: int, year: int):
        return {"employee_id": employee_id, "year": year, "balance_days": service.get_balance(employee_id=employee_id, year=year)}

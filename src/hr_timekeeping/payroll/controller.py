from __future__ import annotations

from flask import Flask, request

from ..common.http import json_endpoint, optional_decimal
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.prime_exemption_service

    @app.route("/employees/<int:employee_id>/prime-exemptions", methods=["GET"], endpoint="prime_exemptions")
    @json_endpoint
    def prime_exemptions(employee_id: int):
        reference = optional_decimal(request.args.get("reference_salary"), "reference_salary")
        return service.compute_for_employee(employee_id=employee_id, reference_salary=reference)

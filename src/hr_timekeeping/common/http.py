from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import wraps
from typing import Any, Dict, Optional, Type, TypeVar

from flask import jsonify, request

from ..core.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


def status_for(exc: DomainError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (InvalidStateTransition, ConflictError)):
        return 409
    return 400


def to_json(value: Any) -> Any:
    """Make dataclasses, enums, decimals and dates JSON friendly."""

    if is_dataclass(value) and not isinstance(value, type):
        return {k: to_json(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    return value


def json_body() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def require_int(data: Dict[str, Any], key: str) -> int:
    """Positive integer id from a body or query dict."""
    value = optional_int(data.get(key), key)
    if value is None or value <= 0:
        raise ValidationError(f"{key} is required")
    return value


def optional_int(value: Any, key: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer")


def optional_decimal(value: Any, key: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")


def parse_enum(enum_cls: Type[E], value: Any, key: str) -> Optional[E]:
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unknown {key} {value!r}")


def json_endpoint(view):
    """Wrap a view returning a payload: ``{"success": true, "data": ...}``.

    Domain errors become 400/404/409 bodies; anything else is logged and
    reported as a generic 500.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            result = view(*args, **kwargs)
        except DomainError as e:
            body = {"success": False, "error": e.code, "message": str(e)}
            current = getattr(e, "current_status", None)
            if current is not None:
                body["current_status"] = current
            logger.debug("%s %s rejected: %s", request.method, request.path, e)
            return jsonify(body), status_for(e)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return jsonify({"success": False, "error": "INTERNAL_ERROR", "message": "Internal server error"}), 500

        status = 200
        if isinstance(result, tuple):
            result, status = result
        return jsonify({"success": True, "data": to_json(result)}), status

    return wrapper

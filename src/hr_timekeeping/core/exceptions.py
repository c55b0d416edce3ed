from __future__ import annotations

from decimal import Decimal
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class InvalidTimeRange(ValidationError):
    code = "INVALID_TIME_RANGE"


class InvalidHours(ValidationError):
    code = "INVALID_HOURS"


class InsufficientRemainingHours(ValidationError):
    code = "INSUFFICIENT_REMAINING_HOURS"

    def __init__(self, requested: Decimal, remaining: Decimal):
        self.requested = requested
        self.remaining = remaining
        super().__init__(f"Requested {requested}h exceeds the {remaining}h remaining to recover")


class LeaveBoundsError(ValidationError):
    code = "LEAVE_BOUNDS"


class OverlappingLeaveError(ValidationError):
    code = "LEAVE_OVERLAP"

    def __init__(self, existing_request_id: int):
        self.existing_request_id = existing_request_id
        super().__init__(f"A leave request already covers this period (request {existing_request_id})")


class NotFoundError(DomainError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStateTransition(DomainError):
    """Raised when the entity's current state does not allow the operation."""

    code = "INVALID_STATE_TRANSITION"

    def __init__(self, current_status: str, attempted: str, message: Optional[str] = None):
        self.current_status = current_status
        self.attempted = attempted
        super().__init__(message or f"Cannot {attempted} from status '{current_status}'")


class ConflictError(DomainError):
    """Optimistic-concurrency failure: re-read the entity and retry."""

    code = "CONFLICT"

    def __init__(self, entity: str, entity_id: object, current_status: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        self.current_status = current_status
        message = f"{entity} {entity_id} was modified concurrently"
        if current_status is not None:
            message += f" (now '{current_status}')"
        super().__init__(message)

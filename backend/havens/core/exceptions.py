"""Domain exceptions raised by services and mapped to HTTP responses in main."""

from typing import Dict, Optional


class HavensError(Exception):
    """Base class for recoverable, per-action domain failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(HavensError):
    """One or more fields failed validation.

    ``errors`` maps each failing field to a user-facing message.
    """

    status_code = 422

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class NotFoundError(HavensError):
    """The referenced entity does not exist (or has been deleted)."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[object] = None):
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class IllegalTransitionError(HavensError):
    """Requested order status change is not permitted from the current status."""

    status_code = 409

    def __init__(self, current, requested):
        super().__init__(
            f"Cannot move order from {getattr(current, 'value', current)} "
            f"to {getattr(requested, 'value', requested)}"
        )
        self.current = current
        self.requested = requested


class OrderClosedError(IllegalTransitionError):
    """The order is in a terminal status and accepts no further transitions."""


class CartError(HavensError):
    """The cart cannot be used for the requested operation."""


class PermissionDenied(HavensError):
    """The acting user may not perform this action."""

    status_code = 403


class InvalidCredentialsError(HavensError):
    """Login failed. Deliberately does not say whether the account exists."""

    status_code = 401

    def __init__(self):
        super().__init__("Invalid email or password")


class ConflictError(HavensError):
    """The write collides with existing data (duplicate email, repeated review)."""

    status_code = 409

"""Domain error taxonomy.

Every error carries a ``kind`` (its class name, used on the wire) and the HTTP
status the API boundary answers with. The client maps the ``kind`` of an error
envelope back onto the same class with :func:`error_for_kind`.
"""

from typing import Any


def _label(value: Any) -> str:
    return str(getattr(value, "value", value))


class OrderflowError(Exception):
    """Base class for all domain errors."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status_code, "kind": self.kind, "message": self.message}


class ValidationError(OrderflowError):
    """Malformed input or out-of-range value."""

    status_code = 422


class InvalidTransitionError(OrderflowError):
    """The requested status edge does not exist in the lifecycle graph."""

    status_code = 409

    def __init__(self, current: Any, requested: Any, role: Any, message: str | None = None):
        self.current = _label(current)
        self.requested = _label(requested)
        self.role = _label(role)
        super().__init__(
            message
            or f"Cannot move order from {self.current} to {self.requested} as {self.role}"
        )


class OrderNotEligibleError(OrderflowError):
    """The order's current status does not allow the operation."""

    status_code = 409


class CourierUnavailableError(OrderflowError):
    """The courier is offline or not accepting assignments."""

    status_code = 409


class AlreadyRatedError(OrderflowError):
    """A write-once rating has already been recorded."""

    status_code = 409


class ConflictError(OrderflowError):
    """A concurrent writer won the race; re-fetch and retry."""

    status_code = 409


class NotFoundError(OrderflowError):
    """Unknown order, courier, menu item or actor."""

    status_code = 404


class AuthenticationError(OrderflowError):
    """Missing, unknown or expired bearer token."""

    status_code = 401


class AuthorizationError(OrderflowError):
    """The acting role or actor may not perform the operation."""

    status_code = 403


class InternalError(OrderflowError):
    status_code = 500


_ERRORS: dict[str, type[OrderflowError]] = {
    cls.__name__: cls
    for cls in (
        ValidationError,
        InvalidTransitionError,
        OrderNotEligibleError,
        CourierUnavailableError,
        AlreadyRatedError,
        ConflictError,
        NotFoundError,
        AuthenticationError,
        AuthorizationError,
        InternalError,
    )
}


def error_for_kind(kind: str, message: str) -> OrderflowError:
    """Rebuild a domain error from the ``kind``/``message`` of an error envelope."""
    cls = _ERRORS.get(kind, OrderflowError)
    if cls is InvalidTransitionError:
        return InvalidTransitionError("?", "?", "?", message=message)
    return cls(message)

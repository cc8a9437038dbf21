"""Dispatch error taxonomy.

Every error here is client-visible and recoverable: the caller can retry
with corrected input or poll again. Each class carries a stable
machine-readable ``code`` and the HTTP status the API layer maps it to.
"""


class DispatchError(Exception):
    """Base exception for all dispatch errors."""

    code = "DISPATCH_ERROR"
    status_code = 400
    default_message = "Dispatch request could not be processed"

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidTransition(DispatchError):
    """Raised when an order status change is not in the transition table."""

    code = "INVALID_TRANSITION"
    default_message = "Order cannot move to the requested status"

    def __init__(self, current: str, target: str, message: str | None = None):
        super().__init__(
            message or f"Cannot transition order from {current} to {target}",
            current_status=current,
            target_status=target,
        )


class AlreadyAssigned(DispatchError):
    """Raised when an order is already held by a pilot.

    ``assigned_to_requester`` tells a retrying client whether it already
    owns the order or lost it to someone else.
    """

    code = "ALREADY_ASSIGNED"
    default_message = "Order already assigned to another pilot"

    def __init__(self, order_id: str, assigned_to_requester: bool = False):
        message = "Order is already assigned to you" if assigned_to_requester else self.default_message
        super().__init__(message, order_id=order_id, assigned_to_requester=assigned_to_requester)


class AgentUnavailable(DispatchError):
    """Raised when the pilot cannot take a new order."""

    code = "AGENT_UNAVAILABLE"
    default_message = "Pilot not available for new orders"

    def __init__(self, pilot_id: str, message: str | None = None):
        super().__init__(message, pilot_id=pilot_id)


class OrderNotReady(DispatchError):
    """Raised when an order is not in a state that allows the operation."""

    code = "ORDER_NOT_READY"
    default_message = "Order not ready for pickup"

    def __init__(self, order_id: str, status: str | None = None, message: str | None = None):
        super().__init__(message, order_id=order_id, status=status)


class InvalidCode(DispatchError):
    """Raised for any handoff-code failure.

    Deliberately carries no detail: wrong, expired and missing codes look
    the same to the caller.
    """

    code = "INVALID_CODE"
    default_message = "Invalid delivery code"

    def __init__(self):
        super().__init__()


class InvalidCoordinates(DispatchError):
    """Raised for latitude/longitude outside the valid ranges."""

    code = "INVALID_COORDINATES"
    default_message = "Invalid coordinates"

    def __init__(self, latitude, longitude):
        super().__init__(
            f"Invalid coordinates ({latitude}, {longitude}): latitude must be within ±90 "
            "and longitude within ±180",
            latitude=latitude,
            longitude=longitude,
        )


class NotFound(DispatchError):
    """Raised when an order or pilot does not exist."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"

    def __init__(self, kind: str, identifier: str, message: str | None = None):
        super().__init__(message or f"{kind} not found: {identifier}", kind=kind, id=identifier)

"""Error taxonomy for the logistics domain.

Every business-rule violation raised by aggregates and handlers is one of
these types. Each carries a stable ``kind`` that the API boundary turns into
a structured failure result; the message is safe to show to the caller.
"""

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError


class LogisticsError(Exception):
    """Base class for typed domain failures."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFound(LogisticsError):
    kind = "not_found"
    status_code = 404


class AccessDenied(LogisticsError):
    kind = "access_denied"
    status_code = 403


class InvalidState(LogisticsError):
    """A guard precondition failed for the object's current state."""

    kind = "invalid_state"
    status_code = 409


class InvalidTransition(InvalidState):
    """A status change that is not an edge of the transition graph."""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"Cannot transition from {from_status} to {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class ValidationFailed(LogisticsError):
    kind = "validation_failed"
    status_code = 422


class Conflict(LogisticsError):
    kind = "conflict"
    status_code = 409


class Internal(LogisticsError):
    kind = "internal"
    status_code = 500


def classify(exc: Exception) -> LogisticsError:
    """Translate any exception into a typed domain failure.

    Protean field validation becomes ``ValidationFailed`` and repository
    misses become ``NotFound``. A stale write rejected by the aggregate
    version check is a ``Conflict``: another request changed the object
    first. Anything unrecognised is ``Internal`` with a
    generic message so storage details never reach the caller.
    """
    if isinstance(exc, LogisticsError):
        return exc
    if isinstance(exc, ValidationError):
        return ValidationFailed(_flatten_messages(exc.messages))
    if isinstance(exc, ObjectNotFoundError):
        return NotFound("Resource not found")
    if isinstance(exc, ExpectedVersionError):
        return Conflict("The resource was modified concurrently, please retry")
    return Internal("An internal error occurred")


def _flatten_messages(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            errors = errors if isinstance(errors, (list, tuple)) else [errors]
            parts.append(f"{field}: {', '.join(str(e) for e in errors)}")
        return "; ".join(parts)
    return str(messages)

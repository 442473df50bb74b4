"""Error taxonomy for address operations.

Each failure the address operations can report has an ``ErrorKind`` and a
matching exception class.  The exceptions are raised inside the service
layer and converted into result envelopes at the operation boundary; they
never reach the HTTP layer.
"""

import enum


class ErrorKind(enum.StrEnum):
    """Machine-readable failure classification carried by result envelopes."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    STORE_FAILURE = "store_failure"


class AddressOperationError(Exception):
    """Base class for failures reported through result envelopes."""

    kind: ErrorKind = ErrorKind.STORE_FAILURE
    default_message: str = "An unknown error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(AddressOperationError):
    """No session could be resolved for the request."""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AddressOperationError):
    """The session lacks the role required for the operation."""

    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AddressOperationError):
    """No address matches the requested id."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Address not found."


class ValidationFailedError(AddressOperationError):
    """Input was rejected; ``field_errors`` maps field names to messages."""

    kind = ErrorKind.VALIDATION_FAILED
    default_message = "Validation failed"

    def __init__(self, field_errors: dict[str, list[str]] | None = None, message: str | None = None) -> None:
        super().__init__(message)
        self.field_errors = field_errors or {}


class StoreFailureError(AddressOperationError):
    """The underlying data access failed; the message is passed through."""

    kind = ErrorKind.STORE_FAILURE

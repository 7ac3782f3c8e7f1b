"""Error taxonomy and result types shared by services and the HTTP layer.

Services never raise for expected failures. They return ``Ok`` or ``Err``
and the route handlers turn an ``Err`` into an :class:`ApiError` with
:func:`unwrap`, which the exception handlers in ``main`` render as the
standard ``{"error": ..., "details": ...}`` envelope.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories and the HTTP status each one maps to."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_REFERENCE = "invalid_reference"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_REFERENCE: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class ServiceError:
    """A failure value returned by a service call."""

    kind: ErrorKind
    message: str
    details: Any = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ServiceError


Result = Ok[T] | Err


def validation_error(message: str, details: Any = None) -> Err:
    return Err(ServiceError(ErrorKind.VALIDATION, message, details))


def unauthorized(details: Any = None) -> Err:
    return Err(ServiceError(ErrorKind.UNAUTHORIZED, "Authentication failed", details))


def forbidden(details: Any = None) -> Err:
    return Err(ServiceError(ErrorKind.FORBIDDEN, "Insufficient permissions", details))


def not_found(details: Any = None) -> Err:
    return Err(ServiceError(ErrorKind.NOT_FOUND, "Resource not found", details))


def conflict(details: Any = None) -> Err:
    return Err(ServiceError(ErrorKind.CONFLICT, "Resource conflict", details))


def invalid_reference(details: Any = None) -> Err:
    return Err(ServiceError(ErrorKind.INVALID_REFERENCE, "Invalid reference", details))


@dataclass(eq=False)
class ApiError(Exception):
    """Raised inside route handlers; rendered by the app's exception handler."""

    kind: ErrorKind
    message: str
    details: Any = None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @classmethod
    def from_service_error(cls, error: ServiceError) -> "ApiError":
        headers = {}
        if error.kind is ErrorKind.UNAUTHORIZED:
            headers["WWW-Authenticate"] = "Bearer"
        return cls(error.kind, error.message, error.details, headers)


def unwrap(result: Result[T]) -> T:
    """Return the success value or raise the matching :class:`ApiError`."""
    if isinstance(result, Err):
        raise ApiError.from_service_error(result.error)
    return result.value


def error_body(message: str, details: Any = None) -> dict[str, Any]:
    """Build the standard error envelope."""
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return body

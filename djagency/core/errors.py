"""
Structured error kinds for the data-access layer.

Every failure coming out of the database, the Supabase auth API or the
storage API is mapped onto a closed set of kinds. Callers switch over the
kind instead of searching error messages.
"""
from dataclasses import dataclass
from enum import Enum

import httpx
from sqlalchemy import exc as sa_exc


class ErrorKind(str, Enum):
    """Closed set of failure kinds."""
    CONFIGURATION = "configuration"   # backend unreachable / unconfigured
    VALIDATION = "validation"         # rejected before (or by) the backend
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"     # auth missing, role or row-level security
    CONFLICT = "conflict"             # unique / foreign key violations
    UNAVAILABLE = "unavailable"       # transient network / connection failures
    BACKEND = "backend"               # anything else


HTTP_STATUS_BY_KIND = {
    ErrorKind.CONFIGURATION: 503,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.BACKEND: 500,
}

# Postgres SQLSTATE for insufficient privilege (also raised by RLS policies)
INSUFFICIENT_PRIVILEGE = "42501"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with a kind and a user-safe message."""

    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]


class NotFoundError(DomainError):
    """Raised when a record does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(kind=ErrorKind.NOT_FOUND, message=f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(DomainError):
    """Raised for client-side validation failures, before any write."""

    def __init__(self, message: str) -> None:
        super().__init__(kind=ErrorKind.VALIDATION, message=message)


class PermissionDeniedError(DomainError):
    """Raised when the acting profile may not perform an operation."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(kind=ErrorKind.UNAUTHORIZED, message=message)


class ConfigurationError(DomainError):
    """Raised when the backend is not configured."""

    def __init__(self, message: str = "Backend is not configured") -> None:
        super().__init__(kind=ErrorKind.CONFIGURATION, message=message)


def _sqlstate(error: sa_exc.DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _kind_from_http_status(status: int) -> ErrorKind:
    if status in (401, 403):
        return ErrorKind.UNAUTHORIZED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 409:
        return ErrorKind.CONFLICT
    if status in (400, 422):
        return ErrorKind.VALIDATION
    if status >= 500:
        return ErrorKind.UNAVAILABLE
    return ErrorKind.BACKEND


def _http_status(error: BaseException) -> int | None:
    # supabase auth / storage errors carry the HTTP status as `status`
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    return None


def classify_exception(error: BaseException) -> ErrorKind:
    """Map any exception raised by the data-access layer onto an ErrorKind."""
    if isinstance(error, DomainError):
        return error.kind

    if isinstance(error, sa_exc.IntegrityError):
        return ErrorKind.CONFLICT
    if isinstance(error, sa_exc.DBAPIError):
        if _sqlstate(error) == INSUFFICIENT_PRIVILEGE:
            return ErrorKind.UNAUTHORIZED
        if isinstance(error, (sa_exc.OperationalError, sa_exc.InterfaceError)):
            return ErrorKind.UNAVAILABLE
        return ErrorKind.BACKEND
    if isinstance(error, sa_exc.NoResultFound):
        return ErrorKind.NOT_FOUND

    if isinstance(error, httpx.HTTPStatusError):
        return _kind_from_http_status(error.response.status_code)
    if isinstance(error, httpx.TransportError):
        return ErrorKind.UNAVAILABLE

    status = _http_status(error)
    if status is not None:
        return _kind_from_http_status(status)

    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorKind.UNAVAILABLE

    return ErrorKind.BACKEND


def to_domain_error(error: BaseException) -> DomainError:
    """Wrap an arbitrary exception into a DomainError, keeping its kind."""
    if isinstance(error, DomainError):
        return error
    return DomainError(kind=classify_exception(error), message=str(error) or error.__class__.__name__)

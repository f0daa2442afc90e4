"""Typed failures raised inside services and their conversion to the response envelope."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from devflow_api.core.logging import get_logger
from devflow_api.domain.schemas.common import ErrorBody, ErrorResponse, FieldErrors

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"


class ActionError(Exception):
    """Base class for failures that are safe to report to the caller."""

    status_code: int = 500

    def __init__(self, message: str, *, details: FieldErrors | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ActionError):
    """Input failed schema or business constraints."""

    status_code = 400

    def __init__(
        self,
        field_errors: Mapping[str, Sequence[str]],
        message: str | None = None,
    ) -> None:
        details = {field: list(messages) for field, messages in field_errors.items()}
        if message is None:
            message = "; ".join(
                f"{field}: {', '.join(messages)}" for field, messages in details.items()
            )
        super().__init__(message or "Validation failed", details=details)


class ConflictError(ValidationError):
    """Request contradicts itself, e.g. the same tag listed twice."""


class UnauthorizedError(ActionError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ForbiddenError(UnauthorizedError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFoundError(ActionError):
    status_code = 404

    def __init__(self, resource: str) -> None:
        super().__init__(f"{resource} not found")


class RequestError(ActionError):
    """Outbound HTTP request returned a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(RequestError):
    def __init__(self, url: str) -> None:
        super().__init__(504, f"Request to {url} timed out")


class PersistenceError(ActionError):
    """The database could not be reached or failed before the operation ran."""

    status_code = 503

    def __init__(self, message: str = "Service Unavailable") -> None:
        super().__init__(message)


class PersistenceTimeoutError(PersistenceError):
    status_code = 504

    def __init__(self) -> None:
        super().__init__("Database operation timed out")


def is_timeout(exc: BaseException) -> bool:
    """True for statement timeouts (asyncio) and connection pool checkout timeouts."""

    return isinstance(exc, (TimeoutError, PoolTimeoutError))


def persistence_error(exc: BaseException) -> PersistenceError:
    return PersistenceTimeoutError() if is_timeout(exc) else PersistenceError()


def handle_error(exc: BaseException, *, operation: str | None = None) -> ErrorResponse:
    """Convert any failure into an :class:`ErrorResponse`.

    ``ActionError`` subclasses keep their message and details. Anything else
    is logged with its traceback and reported as a generic server error,
    except database timeouts, which become a 504.
    """

    if is_timeout(exc):
        logger.warning("action_timed_out", operation=operation, exc_info=exc)
        exc = PersistenceTimeoutError()

    if isinstance(exc, ActionError):
        logger.info(
            "action_rejected",
            operation=operation,
            error=type(exc).__name__,
            message=exc.message,
        )
        return ErrorResponse(
            error=ErrorBody(message=exc.message, details=exc.details),
            status_code=exc.status_code,
        )

    logger.error("action_failed", operation=operation, exc_info=exc)
    return ErrorResponse(error=ErrorBody(message=INTERNAL_ERROR_MESSAGE), status_code=500)


__all__ = [
    "ActionError",
    "ConflictError",
    "ForbiddenError",
    "INTERNAL_ERROR_MESSAGE",
    "NotFoundError",
    "PersistenceError",
    "PersistenceTimeoutError",
    "RequestError",
    "RequestTimeoutError",
    "UnauthorizedError",
    "ValidationError",
    "handle_error",
    "is_timeout",
    "persistence_error",
]

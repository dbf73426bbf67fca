"""Error taxonomy for the reporting API and the handlers that render it."""

import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from wellness_dashboard.core.config import settings
from wellness_dashboard.core.logging import get_logger

logger = get_logger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for the API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE = "INVALID_DATE"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    DATABASE_ERROR = "DATABASE_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


RETRYABLE_CODES = frozenset({ErrorCode.DATABASE_ERROR, ErrorCode.TIMEOUT_ERROR})


class APIException(Exception):
    """Base API exception with enhanced error information."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.field = field
        self.context = context or {}
        self.detail = detail
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.error_code in RETRYABLE_CODES


class ValidationException(APIException):
    """Validation error exception."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            field=field,
            context=context,
        )


class ConfigurationError(APIException):
    """The data store is not configured; fatal and never retried."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            context=context,
        )


class UpstreamQueryError(APIException):
    """The data store failed, timed out or rejected a query.

    The caller may retry; the service itself never does.
    """

    def __init__(
        self,
        message: str,
        timed_out: bool = False,
        context: Optional[Dict[str, Any]] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.TIMEOUT_ERROR if timed_out else ErrorCode.DATABASE_ERROR,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            context=context,
            detail=detail,
        )


class MalformedRecordWarning(UserWarning):
    """A source row that could not be bucketed and was skipped."""

    def __init__(self, record_id: Any, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"record {record_id!r} skipped: {reason}")


def report_malformed(record_id: Any, reason: str, **context: Any) -> MalformedRecordWarning:
    """Log a skipped row; never raises."""
    warning = MalformedRecordWarning(record_id, reason)
    logger.warning(
        "Malformed record skipped",
        record_id=str(record_id),
        reason=reason,
        warning_type=type(warning).__name__,
        **context,
    )
    return warning


def _is_timeout(error: Exception) -> bool:
    if isinstance(error, sa_exc.TimeoutError):
        return True
    text = str(getattr(error, "orig", error)).lower()
    return "timeout" in text or "canceling statement" in text


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as UpstreamQueryError."""
    try:
        yield
    except APIException:
        raise
    except (sa_exc.SQLAlchemyError, TimeoutError, OSError) as e:
        timed_out = isinstance(e, TimeoutError) or _is_timeout(e)
        logger.error(
            "Data store query failed",
            operation=operation,
            timed_out=timed_out,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise UpstreamQueryError(
            f"Failed to {operation}",
            timed_out=timed_out,
            context={"operation": operation},
            detail=str(e),
        ) from e


def get_request_id(request: Request) -> str:
    """Get request ID from request state or generate new one."""
    if hasattr(request.state, 'request_id'):
        return request.state.request_id
    return str(uuid.uuid4())


def _error_body(
    code: str,
    message: str,
    request_id: Optional[str],
    retryable: bool = False,
    detail: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": request_id,
        "retryable": retryable,
    }
    if extra:
        body.update(extra)
    # Underlying error text is only exposed outside production
    if detail and not settings.is_production:
        body["detail"] = detail
    return {"error": body}


def _headers(request_id: Optional[str]) -> Optional[Dict[str, str]]:
    return {"X-Request-ID": request_id} if request_id else None


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle APIException and its subclasses."""
    request_id = get_request_id(request)
    logger.error(
        f"API Error: {exc.error_code.value}",
        error_code=exc.error_code.value,
        message=exc.message,
        field=exc.field,
        status_code=exc.status_code,
        request_id=request_id,
        context=exc.context,
    )
    extra = {"field": exc.field} if exc.field else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(
            exc.error_code.value,
            exc.message,
            request_id,
            retryable=exc.retryable,
            detail=exc.detail,
            extra=extra,
        ),
        headers=_headers(request_id),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI request validation errors."""
    request_id = get_request_id(request)
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "code": error["type"].upper(),
        })

    logger.warning("Validation errors", errors=errors, request_id=request_id)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            ErrorCode.VALIDATION_ERROR.value,
            "Validation error",
            request_id,
            extra={"errors": errors},
        ),
        headers=_headers(request_id),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException."""
    request_id = get_request_id(request)
    error_code = ErrorCode.INTERNAL_SERVER_ERROR
    if exc.status_code == 404:
        error_code = ErrorCode.RESOURCE_NOT_FOUND
    elif exc.status_code in (400, 422):
        error_code = ErrorCode.VALIDATION_ERROR

    logger.error(
        f"HTTP Exception: {exc.status_code}",
        status_code=exc.status_code,
        detail=str(exc.detail),
        request_id=request_id,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(error_code.value, str(exc.detail), request_id),
        headers=_headers(request_id),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = get_request_id(request)
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        exception=str(exc),
        request_id=request_id,
        traceback=traceback.format_exc(),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            ErrorCode.INTERNAL_SERVER_ERROR.value,
            "An unexpected error occurred",
            request_id,
            detail=f"{type(exc).__name__}: {exc}",
        ),
        headers=_headers(request_id),
    )

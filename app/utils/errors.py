import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_logger
from .responses import ResponseBuilder

logger = get_logger()


class BusinessLogicError(Exception):
    """Base for errors a caller can fix by changing what they sent."""

    def __init__(self, message: str, error_code: str = "BLOC_ERROR"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class JobValidationError(BusinessLogicError):
    """A notification job payload is missing or has malformed fields."""

    def __init__(
        self,
        message: str = "Invalid notification job payload",
        errors: Optional[List[Dict[str, Any]]] = None,
        error_code: str = "JOB_VALIDATION_ERROR",
    ):
        super().__init__(message, error_code)
        self.errors = errors or []

    @classmethod
    def from_pydantic(
        cls, exc: ValidationError, message: str = "Invalid notification job payload"
    ) -> "JobValidationError":
        return cls(message=message, errors=format_validation_errors(exc.errors()))


class UnknownJobKindError(Exception):
    """A job carries a kind tag the worker does not handle."""

    def __init__(self, kind: Any, error_code: str = "UNKNOWN_JOB_KIND"):
        message = f"Unknown notification job kind: {kind!r}"
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.error_code = error_code


class NotificationQueueError(Exception):
    """The notification queue could not accept a job."""

    def __init__(self, message: str, error_code: str = "QUEUE_UNAVAILABLE"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def format_validation_errors(errors) -> List[Dict[str, Any]]:
    return [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
            "input": error.get("input"),
        }
        for error in errors
    ]


def setup_error_handlers(app: FastAPI):
    """Map queue, validation and unexpected errors onto the API envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}")
        return ResponseBuilder.error(
            request,
            message=str(exc.detail),
            error_code="HTTP_ERROR",
            status_code=exc.status_code,
        )

    # Enqueue bodies that fail validation never reach the queue.
    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = format_validation_errors(exc.errors())
        logger.warning(f"Rejected notification request: {errors}")
        return ResponseBuilder.error(
            request,
            message="Request validation failed",
            error_code="VALIDATION_ERROR",
            errors=errors,
        )

    @app.exception_handler(BusinessLogicError)
    async def business_logic_exception_handler(
        request: Request, exc: BusinessLogicError
    ):
        logger.warning(f"{exc.error_code}: {exc.message}")
        return ResponseBuilder.error(
            request,
            message=exc.message,
            error_code=exc.error_code,
            errors=getattr(exc, "errors", None) or None,
        )

    @app.exception_handler(UnknownJobKindError)
    async def unknown_job_kind_handler(request: Request, exc: UnknownJobKindError):
        logger.warning(exc.message)
        return ResponseBuilder.error(
            request, message=exc.message, error_code=exc.error_code
        )

    @app.exception_handler(NotificationQueueError)
    async def queue_exception_handler(request: Request, exc: NotificationQueueError):
        logger.error(f"Notification queue unavailable: {exc.message}")
        return ResponseBuilder.error(
            request,
            message="Notification queue is unavailable",
            error_code=exc.error_code,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {str(exc)}")
        logger.error(f"Traceback: {traceback.format_exc()}")
        return ResponseBuilder.error(
            request,
            message="An internal server error occurred",
            error_code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

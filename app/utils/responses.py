import uuid
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from app.schemas.notification_schemas import JobAccepted
from app.schemas.response_schemas import ApiResponse, ResponseStatus


def _request_id(request: Request) -> str:
    # Errors raised before RequestIDMiddleware runs have no id on the request yet.
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _render(request: Request, status_code: int, **fields) -> JSONResponse:
    response = ApiResponse(
        request_id=_request_id(request), path=str(request.url.path), **fields
    )
    return JSONResponse(
        status_code=status_code, content=response.to_wire(exclude_none=True)
    )


class ResponseBuilder:
    """Builds the JSON envelopes returned by the notification API."""

    @staticmethod
    def accepted(
        request: Request, job: JobAccepted, message: str = "Notification queued"
    ) -> JSONResponse:
        """A job was handed to the queue; delivery happens later in the worker."""
        return _render(
            request,
            status.HTTP_202_ACCEPTED,
            success=True,
            status=ResponseStatus.SUCCESS,
            message=message,
            data=job.to_wire(),
        )

    @staticmethod
    def success(
        request: Request, message: str, data: Optional[Any] = None
    ) -> JSONResponse:
        return _render(
            request,
            status.HTTP_200_OK,
            success=True,
            status=ResponseStatus.SUCCESS,
            message=message,
            data=data,
        )

    @staticmethod
    def error(
        request: Request,
        message: str,
        error_code: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        errors: Optional[List[Dict[str, Any]]] = None,
    ) -> JSONResponse:
        return _render(
            request,
            status_code,
            success=False,
            status=ResponseStatus.ERROR,
            message=message,
            error_code=error_code,
            errors=errors,
        )

import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.context import request_id_scope

REQUEST_ID_HEADER = "X-Request-ID"


def _incoming_request_id(header_value: Optional[str]) -> str:
    """Reuse a caller-supplied UUID, otherwise mint a new one."""
    try:
        return str(uuid.UUID(header_value))
    except (TypeError, ValueError):
        return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id that follows its queued jobs into the worker logs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _incoming_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        with request_id_scope(request_id):
            response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import Field

from app.schemas.camel_base_model import CamelCaseBaseModel


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class ErrorDetail(CamelCaseBaseModel):
    """One rejected field of a request body or job payload."""

    field: str
    message: str
    type: Optional[str] = None
    input: Optional[Any] = None


class ApiResponse(CamelCaseBaseModel):
    """Envelope returned by every notification endpoint."""

    success: bool
    status: ResponseStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    errors: Optional[List[ErrorDetail]] = None
    request_id: str
    path: str
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

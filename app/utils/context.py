from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

# Set per HTTP request by RequestIDMiddleware and per job by the Celery task.
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return _request_id.get()


@contextmanager
def request_id_scope(request_id: Optional[str]) -> Iterator[Optional[str]]:
    """Bind a request id for the duration of a request or a drained job."""
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)

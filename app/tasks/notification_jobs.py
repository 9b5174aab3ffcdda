import asyncio
from typing import Any, Awaitable, Dict, Optional, TypeVar

from celery.signals import worker_process_shutdown

from app.celery import celery
from app.config.settings import settings
from app.services.notifications.runtime import NotificationRuntime
from app.services.notifications.worker import NotificationWorker
from app.utils.context import request_id_scope
from app.utils.errors import JobValidationError, UnknownJobKindError
from app.utils.logging import get_logger

T = TypeVar("T")

# The worker keeps one event loop per process so the HTTP client and the
# database pool built on it can be reused across jobs.
_event_loop: Optional[asyncio.AbstractEventLoop] = None
_runtime: Optional[NotificationRuntime] = None


def run_on_worker_loop(coro: Awaitable[T]) -> T:
    global _event_loop
    if _event_loop is None or _event_loop.is_closed():
        _event_loop = asyncio.new_event_loop()
    return _event_loop.run_until_complete(coro)


async def get_notification_worker() -> NotificationWorker:
    global _runtime
    if _runtime is None:
        _runtime = NotificationRuntime.build(settings)
    return _runtime.worker


@worker_process_shutdown.connect
def close_notification_runtime(**kwargs):
    global _runtime
    if _runtime is not None and _event_loop is not None and not _event_loop.is_closed():
        _event_loop.run_until_complete(_runtime.close())
        _event_loop.close()
    _runtime = None


def enqueue_notification_job(request_id: str, message: Dict[str, Any]) -> str:
    """Publish a validated job message and return its task id."""
    result = process_notification_job_task.apply_async(
        kwargs={
            "request_id": request_id,
            "kind": message["kind"],
            "payload": message["payload"],
        }
    )
    return result.id


@celery.task(
    bind=True,
    max_retries=settings.NOTIFICATION_JOB_MAX_RETRIES,
    default_retry_delay=settings.NOTIFICATION_JOB_RETRY_DELAY_SECONDS,
)
def process_notification_job_task(
    self, request_id: str, kind: str, payload: Dict[str, Any]
):
    """
    Celery task that drains one notification job.

    Args:
        request_id: The request ID from the HTTP request that queued the job
        kind: Job kind tag (see JobKind)
        payload: Job payload in its wire (camelCase) form

    Returns:
        The job's DispatchSummary as a camelCase dict.
    """
    logger = get_logger().bind(request_id=request_id)
    logger.info(f"Processing notification job {self.request.id} of type {kind}")

    try:
        summary = run_on_worker_loop(
            _async_process_notification_job(request_id, kind, payload)
        )
    except (UnknownJobKindError, JobValidationError) as e:
        logger.error(f"Notification job {self.request.id} rejected: {e.message}")
        raise
    except Exception as e:
        logger.error(f"Notification job {self.request.id} failed: {str(e)}")
        raise self.retry(exc=e)

    logger.info(
        f"Notification job {self.request.id} completed: "
        f"{summary['successful']}/{summary['total']} delivered"
    )
    return summary


async def _async_process_notification_job(
    request_id: str, kind: str, payload: Dict[str, Any]
) -> Dict[str, Any]:
    with request_id_scope(request_id):
        worker = await get_notification_worker()
        summary = await worker.handle_message(kind, payload)
        return summary.to_wire()

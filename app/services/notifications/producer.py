import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from kombu.exceptions import OperationalError

from app.schemas.camel_base_model import CamelCaseBaseModel
from app.schemas.notification_schemas import (
    BatchNotificationItem,
    JobAccepted,
    JobKind,
    UserRole,
)
from app.services.notifications.jobs import parse_job
from app.utils.context import get_request_id
from app.utils.errors import NotificationQueueError
from app.utils.logging import get_logger

logger = get_logger()

# (request_id, message) -> job id
JobPublisher = Callable[[str, Dict[str, Any]], str]


def publish_to_celery(request_id: str, message: Dict[str, Any]) -> str:
    from app.tasks.notification_jobs import enqueue_notification_job

    return enqueue_notification_job(request_id, message)


class NotificationProducer:
    """
    Front of the notification queue used by request handlers.

    Every enqueue validates its payload synchronously, publishes the job and
    returns as soon as the broker has accepted it. Delivery outcomes are never
    visible here.
    """

    def __init__(self, publisher: Optional[JobPublisher] = None):
        self.publisher = publisher or publish_to_celery

    def enqueue(
        self,
        kind: Union[JobKind, str],
        payload: Union[Mapping[str, Any], CamelCaseBaseModel],
    ) -> JobAccepted:
        job = parse_job(kind, payload)
        request_id = get_request_id() or str(uuid.uuid4())

        try:
            job_id = self.publisher(request_id, job.to_message())
        except (OperationalError, ConnectionError) as e:
            logger.error(f"Failed to queue {job.kind.value} job: {str(e)}")
            raise NotificationQueueError(f"Could not queue notification job: {str(e)}") from e

        logger.info(f"Queued {job.kind.value} job {job_id}")
        return JobAccepted(job_id=job_id, kind=job.kind)

    def enqueue_user(
        self,
        email: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> JobAccepted:
        return self.enqueue(
            JobKind.SEND_TO_USER,
            {"email": email, "title": title, "body": body, "data": data},
        )

    def enqueue_users(
        self,
        emails: List[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> JobAccepted:
        return self.enqueue(
            JobKind.SEND_TO_USERS,
            {"emails": emails, "title": title, "body": body, "data": data},
        )

    def enqueue_course(
        self,
        course_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> JobAccepted:
        return self.enqueue(
            JobKind.SEND_TO_COURSE,
            {"courseId": course_id, "title": title, "body": body, "data": data},
        )

    def enqueue_role(
        self,
        role: Union[UserRole, str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> JobAccepted:
        return self.enqueue(
            JobKind.SEND_TO_ROLE,
            {"role": role, "title": title, "body": body, "data": data},
        )

    def enqueue_batch(
        self,
        notifications: Sequence[Union[BatchNotificationItem, Mapping[str, Any]]],
    ) -> JobAccepted:
        if isinstance(notifications, (list, tuple)):
            notifications = [
                item.model_dump(by_alias=True)
                if isinstance(item, BatchNotificationItem)
                else item
                for item in notifications
            ]
        return self.enqueue(JobKind.SEND_BATCH, {"notifications": notifications})

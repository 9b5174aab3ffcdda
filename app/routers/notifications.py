from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.schemas.notification_schemas import (
    JobKind,
    SendBatchPayload,
    SendToCoursePayload,
    SendToRolePayload,
    SendToUserPayload,
    SendToUsersPayload,
)
from app.services.notifications.producer import NotificationProducer
from app.utils.responses import ResponseBuilder

notifications_router = APIRouter()


def get_notification_producer() -> NotificationProducer:
    return NotificationProducer()


Producer = Annotated[NotificationProducer, Depends(get_notification_producer)]


@notifications_router.post("/user", status_code=202)
def send_to_user(request: Request, payload: SendToUserPayload, producer: Producer):
    """Queue a notification for a single user."""
    job = producer.enqueue(JobKind.SEND_TO_USER, payload)
    return ResponseBuilder.accepted(request, job, "Notification queued")


@notifications_router.post("/users", status_code=202)
def send_to_users(request: Request, payload: SendToUsersPayload, producer: Producer):
    """Queue one notification for a list of users."""
    job = producer.enqueue(JobKind.SEND_TO_USERS, payload)
    return ResponseBuilder.accepted(request, job, "Batch notification queued")


@notifications_router.post("/course", status_code=202)
def send_to_course(request: Request, payload: SendToCoursePayload, producer: Producer):
    """Queue a notification for every student enrolled in a course."""
    job = producer.enqueue(JobKind.SEND_TO_COURSE, payload)
    return ResponseBuilder.accepted(request, job, "Course notification queued")


@notifications_router.post("/role", status_code=202)
def send_to_role(request: Request, payload: SendToRolePayload, producer: Producer):
    """Queue a notification for all students or all teachers."""
    job = producer.enqueue(JobKind.SEND_TO_ROLE, payload)
    return ResponseBuilder.accepted(request, job, "Role notification queued")


@notifications_router.post("/batch", status_code=202)
def send_batch(request: Request, payload: SendBatchPayload, producer: Producer):
    """Queue individually addressed notifications, delivered in rate-limited chunks."""
    job = producer.enqueue(JobKind.SEND_BATCH, payload)
    return ResponseBuilder.accepted(request, job, "Batch notification queued")

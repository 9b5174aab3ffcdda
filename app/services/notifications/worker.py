from typing import Any, Awaitable, Callable, Dict, Mapping

from app.schemas.notification_schemas import (
    DispatchSummary,
    JobKind,
    NotificationJob,
    SendBatchPayload,
    SendToCoursePayload,
    SendToRolePayload,
    SendToUserPayload,
    SendToUsersPayload,
)
from app.services.notifications.dispatch_service import NotificationDispatchService
from app.services.notifications.jobs import parse_job
from app.utils.logging import get_logger

logger = get_logger()

JobHandler = Callable[[Any], Awaitable[DispatchSummary]]


class NotificationWorker:
    """Routes one drained job onto the dispatch service.

    Returning a summary acknowledges the job. Unknown kinds and malformed
    payloads raise and fail the job; datastore failures raise and let the
    queue's retry policy apply.
    """

    def __init__(self, dispatcher: NotificationDispatchService):
        self.dispatcher = dispatcher
        self._handlers: Dict[JobKind, JobHandler] = {
            JobKind.SEND_TO_USER: self._send_to_user,
            JobKind.SEND_TO_USERS: self._send_to_users,
            JobKind.SEND_TO_COURSE: self._send_to_course,
            JobKind.SEND_TO_ROLE: self._send_to_role,
            JobKind.SEND_BATCH: self._send_batch,
        }
        missing = set(JobKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for job kinds: {sorted(k.value for k in missing)}")

    async def handle_message(self, kind: Any, payload: Mapping[str, Any]) -> DispatchSummary:
        return await self.handle(parse_job(kind, payload))

    async def handle(self, job: NotificationJob) -> DispatchSummary:
        handler = self._handlers[job.kind]
        return await handler(job.payload)

    async def _send_to_user(self, payload: SendToUserPayload) -> DispatchSummary:
        result = await self.dispatcher.notify(
            payload.email, payload.title, payload.body, payload.data
        )
        return DispatchSummary.from_results([result])

    async def _send_to_users(self, payload: SendToUsersPayload) -> DispatchSummary:
        return await self.dispatcher.notify_many(
            payload.emails, payload.title, payload.body, payload.data
        )

    async def _send_to_course(self, payload: SendToCoursePayload) -> DispatchSummary:
        return await self.dispatcher.notify_course(
            payload.course_id, payload.title, payload.body, payload.data
        )

    async def _send_to_role(self, payload: SendToRolePayload) -> DispatchSummary:
        return await self.dispatcher.notify_role(
            payload.role, payload.title, payload.body, payload.data
        )

    async def _send_batch(self, payload: SendBatchPayload) -> DispatchSummary:
        return await self.dispatcher.notify_batch(payload.notifications)

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from app.schemas.notification_schemas import (
    BatchNotificationItem,
    DeliveryChannel,
    DeliveryOutcome,
    DispatchSummary,
    TargetResult,
    UserRole,
)
from app.services.notifications.delivery_clients import EmailClient, PushNotificationClient
from app.services.notifications.target_resolver import (
    CourseRecipients,
    RoleRecipients,
    TargetResolver,
)
from app.services.notifications.user_directory import UserDirectory
from app.utils.logging import get_logger

logger = get_logger()

NO_TOKEN = "no-token"

Sleep = Callable[[float], Awaitable[Any]]
# (email, title, body, data)
Target = Tuple[str, str, str, Optional[Dict[str, Any]]]


class NotificationDispatchService:
    """
    Delivers notifications over email and push and aggregates the outcomes.

    A target counts as notified when either channel succeeds. Missing or
    unreadable push tokens and empty target sets are recorded as outcomes,
    never raised.
    Exceptions from one target are confined to that target's result.
    """

    def __init__(
        self,
        resolver: TargetResolver,
        directory: UserDirectory,
        push_client: PushNotificationClient,
        email_client: EmailClient,
        chunk_size: int = 100,
        chunk_delay_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self.resolver = resolver
        self.directory = directory
        self.push_client = push_client
        self.email_client = email_client
        self.chunk_size = chunk_size
        self.chunk_delay_seconds = chunk_delay_seconds
        self.sleep = sleep
    async def notify(
        self,
        email: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> TargetResult:
        """Send email and push to one address concurrently."""
        email_outcome, push_outcome = await asyncio.gather(
            self.email_client.send(email, title, body),
            self._push_to(email, title, body, data),
            return_exceptions=True,
        )

        # Both branches settle before an unexpected client error surfaces.
        for outcome in (push_outcome, email_outcome):
            if isinstance(outcome, BaseException):
                raise outcome

        return TargetResult(
            email=email,
            success=push_outcome.success or email_outcome.success,
            push=push_outcome,
            email_result=email_outcome,
        )

    async def _push_to(
        self, email: str, title: str, body: str, data: Optional[Dict[str, Any]]
    ) -> DeliveryOutcome:
        try:
            token = await self.directory.get_push_token(email)
        except Exception as e:
            # A failed lookup only costs the push channel; the email outcome still counts.
            logger.error(f"Push token lookup failed for {email}: {str(e)}")
            return DeliveryOutcome(
                channel=DeliveryChannel.PUSH, success=False, error_detail=str(e)
            )

        if not token:
            logger.warning(f"No push token for {email}")
            return DeliveryOutcome(
                channel=DeliveryChannel.PUSH, success=False, error_detail=NO_TOKEN
            )
        return await self.push_client.send(token, title, body, data)

    async def notify_many(
        self,
        emails: Sequence[str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> DispatchSummary:
        results = await self._settle([(email, title, body, data) for email in emails])
        summary = DispatchSummary.from_results(results)
        logger.info(
            f"Notified {summary.successful}/{summary.total} targets ({summary.failed} failed)"
        )
        return summary

    async def notify_course(
        self,
        course_id: str,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> DispatchSummary:
        emails = await self.resolver.resolve(CourseRecipients(course_id=course_id))
        if not emails:
            return DispatchSummary.empty()
        return await self.notify_many(emails, title, body, data)

    async def notify_role(
        self,
        role: UserRole,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> DispatchSummary:
        emails = await self.resolver.resolve(RoleRecipients(role=role))
        if not emails:
            return DispatchSummary.empty()
        return await self.notify_many(emails, title, body, data)

    async def notify_batch(
        self,
        items: Sequence[BatchNotificationItem],
        chunk_size: Optional[int] = None,
    ) -> DispatchSummary:
        """Deliver per-item notifications in sequential chunks with a pause between chunks."""
        if chunk_size is None:
            chunk_size = self.chunk_size
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        chunks = [
            list(items[start : start + chunk_size])
            for start in range(0, len(items), chunk_size)
        ]

        results: List[TargetResult] = []
        for index, chunk in enumerate(chunks):
            results.extend(
                await self._settle(
                    [(item.email, item.title, item.body, item.data) for item in chunk]
                )
            )
            logger.debug(f"Batch chunk {index + 1}/{len(chunks)} done ({len(chunk)} items)")

            if index < len(chunks) - 1:
                await self.sleep(self.chunk_delay_seconds)

        summary = DispatchSummary.from_results(results)
        logger.info(
            f"Batch notified {summary.successful}/{summary.total} targets "
            f"in {len(chunks)} chunks"
        )
        return summary

    async def _settle(self, targets: Sequence[Target]) -> List[TargetResult]:
        """Notify every target concurrently; one failure never cancels its siblings."""
        outcomes = await asyncio.gather(
            *(self.notify(*target) for target in targets),
            return_exceptions=True,
        )

        results: List[TargetResult] = []
        for (email, *_), outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Error sending to {email}: {str(outcome)}")
                results.append(
                    TargetResult(email=email, success=False, error=str(outcome))
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        return results

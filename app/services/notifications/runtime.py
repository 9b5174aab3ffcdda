from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config.settings import Settings, settings as default_settings
from app.db.session import create_engine, create_session_factory
from app.services.notifications.delivery_clients import EmailClient, PushNotificationClient
from app.services.notifications.dispatch_service import NotificationDispatchService
from app.services.notifications.roles import RoleClassifier
from app.services.notifications.target_resolver import TargetResolver
from app.services.notifications.user_directory import UserDirectory
from app.services.notifications.worker import NotificationWorker
from app.utils.logging import get_logger

logger = get_logger()


class NotificationRuntime:
    """Process-wide HTTP client, database engine and the worker wired on top of them."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        engine: AsyncEngine,
        worker: NotificationWorker,
    ):
        self.http_client = http_client
        self.engine = engine
        self.worker = worker

    @classmethod
    def build(
        cls,
        settings: Settings = default_settings,
        http_client: Optional[httpx.AsyncClient] = None,
        engine: Optional[AsyncEngine] = None,
    ) -> "NotificationRuntime":
        http_client = http_client or httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT_SECONDS
        )
        engine = engine or create_engine(settings.DATABASE_URL)

        directory = UserDirectory(
            create_session_factory(engine), RoleClassifier.from_settings(settings)
        )
        dispatcher = NotificationDispatchService(
            resolver=TargetResolver(directory),
            directory=directory,
            push_client=PushNotificationClient(http_client, settings.PUSH_GATEWAY_URL),
            email_client=EmailClient(http_client, settings.EMAIL_WEBHOOK_URL),
            chunk_size=settings.NOTIFICATION_BATCH_CHUNK_SIZE,
            chunk_delay_seconds=settings.NOTIFICATION_BATCH_CHUNK_DELAY_SECONDS,
        )
        logger.info("Notification runtime initialised")
        return cls(http_client=http_client, engine=engine, worker=NotificationWorker(dispatcher))

    async def close(self) -> None:
        await self.http_client.aclose()
        await self.engine.dispose()
        logger.info("Notification runtime closed")

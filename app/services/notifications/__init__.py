from .dispatch_service import NotificationDispatchService
from .producer import NotificationProducer
from .runtime import NotificationRuntime
from .target_resolver import TargetResolver
from .user_directory import UserDirectory
from .worker import NotificationWorker

__all__ = [
    "NotificationDispatchService",
    "NotificationProducer",
    "NotificationRuntime",
    "TargetResolver",
    "UserDirectory",
    "NotificationWorker",
]

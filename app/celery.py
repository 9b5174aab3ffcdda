from celery import Celery

from app.config.settings import settings

# Producers (API processes) and the worker share this app; only the worker imports the tasks.
celery = Celery(
    "course_notifications",
    broker=settings.redis_url,
    backend=settings.redis_url,
)
celery.config_from_object("app.config.celeryconfig")

from kombu import Queue

from .settings import settings

# Broker and result backend are passed to the Celery app in app/celery.py.
include = ["app.tasks"]

timezone = "UTC"
enable_utc = True

# Job messages and results are plain JSON (camelCase payloads and summaries).
task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]
result_expires = 3600
task_track_started = True

# One job at a time; fan-out happens inside the job on the worker's event loop.
worker_concurrency = 1
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# A job is acknowledged only once its handler returns.
task_acks_late = True
task_reject_on_worker_lost = True
task_default_retry_delay = settings.NOTIFICATION_JOB_RETRY_DELAY_SECONDS
task_max_retries = settings.NOTIFICATION_JOB_MAX_RETRIES

task_default_queue = settings.NOTIFICATION_QUEUE_NAME
task_queues = (Queue(settings.NOTIFICATION_QUEUE_NAME),)
task_routes = {
    "app.tasks.notification_jobs.process_notification_job_task": {
        "queue": settings.NOTIFICATION_QUEUE_NAME
    },
}

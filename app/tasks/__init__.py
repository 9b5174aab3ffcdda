from .notification_jobs import enqueue_notification_job, process_notification_job_task

__all__ = [
    "enqueue_notification_job",
    "process_notification_job_task",
]

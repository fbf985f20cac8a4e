"""
Celery application configuration.

Redis is both the message broker and the result backend. The worker sends
emails and runs the periodic auth-state cleanup.
"""

from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

celery_app = Celery(
    "portfolio_auth_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,

    # Results expire after 1 hour
    result_expires=3600,

    # Worker behavior
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=200,

    beat_schedule={
        "cleanup-expired-auth-state": {
            "task": "cleanup_expired_auth_state",
            "schedule": crontab(minute="*/15"),
        },
    },
)

# Auto-discover tasks from app.tasks module
celery_app.autodiscover_tasks(['app'])

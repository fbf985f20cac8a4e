"""
Enqueue Celery tasks from request handlers without letting broker trouble
reach the caller.

Publishing runs on a small thread pool over a fresh Kombu connection and is
bounded by ENQUEUE_TIMEOUT_SECONDS. The outcome comes back as a bool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import NamedTuple
from celery import Task
from kombu import Connection

from app.core.config import settings

logger = logging.getLogger(__name__)

ENQUEUE_TIMEOUT_SECONDS = 5
PUBLISH_RETRY_POLICY = {
    'max_retries': 3,
    'interval_start': 0,
    'interval_step': 0.2,
    'interval_max': 0.2,
}

_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_enqueue")


class EnqueueResult(NamedTuple):
    queued: bool
    task_id: str = ""
    error: str = ""


def _publish(task: Task, args: tuple, kwargs: dict) -> EnqueueResult:
    try:
        with Connection(settings.REDIS_URL) as conn:
            result = task.apply_async(
                args=args,
                kwargs=kwargs,
                connection=conn,
                retry=True,
                retry_policy=PUBLISH_RETRY_POLICY,
            )
            return EnqueueResult(True, result.id)
    except Exception as e:
        return EnqueueResult(False, error=str(e))


def queue_task_safely(task: Task, *args, **kwargs) -> bool:
    """
    Queue a Celery task, reporting failure instead of raising.

    Task arguments are never logged; they carry OTP codes and links.

    Example:
        queue_task_safely(send_otp_email_task, to_email='user@example.com', otp_code='123456')
    """
    future = _executor.submit(_publish, task, args, kwargs)
    try:
        outcome = future.result(timeout=ENQUEUE_TIMEOUT_SECONDS)
    except FutureTimeoutError:
        outcome = EnqueueResult(False, error=f"broker did not answer within {ENQUEUE_TIMEOUT_SECONDS}s")

    if outcome.queued:
        logger.info(f"Queued {task.name} ({outcome.task_id})")
    else:
        logger.error(f"Could not queue {task.name}: {outcome.error}")
    return outcome.queued

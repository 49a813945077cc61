"""
Durable delivery queue for stock-level webhooks.

Producers (the API process) call ``NotificationQueue.add`` which hands one
``availability.notify`` job to Celery on the Redis broker. The Celery worker
POSTs ``{"sku", "newStock"}`` to the subscriber, retrying with exponential
backoff. Once every attempt is used the job is written to a Redis list for
manual inspection and only logged.

Run the worker with:
    celery -A stockflow.services.notification_queue worker --loglevel=INFO
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import redis
from celery import Celery, Task

from stockflow.core.config import get_settings
from stockflow.schemas.webhook import StockNotification

logger = logging.getLogger(__name__)

settings = get_settings()

NOTIFY_TASK_NAME = "availability.notify"

celery_app = Celery("stockflow", broker=settings.REDIS_URL)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    task_acks_late=True,
    task_ignore_result=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)

_redis_client: Optional[redis.Redis] = None


def _get_redis() -> redis.Redis:
    """Get or create the singleton Redis client used for the dead-letter list."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


def retry_countdown(retries: int, backoff_ms: Optional[int] = None) -> float:
    """Seconds to wait before the next attempt: backoff, 2x backoff, 4x backoff, ..."""
    if backoff_ms is None:
        backoff_ms = settings.WEBHOOK_BACKOFF_MS
    return (backoff_ms / 1000.0) * (2 ** retries)


def deliver_notification(
    endpoint: str,
    sku: str,
    new_stock: int,
    client: Optional[httpx.Client] = None,
) -> int:
    """
    POST one stock notification to its subscriber.

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx response.
    """
    body = {"sku": sku, "newStock": new_stock}
    if client is None:
        with httpx.Client(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as own_client:
            response = own_client.post(endpoint, json=body)
    else:
        response = client.post(endpoint, json=body)
    response.raise_for_status()
    return response.status_code


def dead_letter(payload: Dict[str, Any], error: str, attempts: int) -> None:
    """Keep a job that exhausted its attempts."""
    record = {
        **payload,
        "error": error,
        "attempts": attempts,
        "failedAt": datetime.now(timezone.utc).isoformat(),
    }
    _get_redis().rpush(settings.WEBHOOK_DEAD_LETTER_KEY, json.dumps(record))


def list_dead_letters(limit: int = 100) -> List[Dict[str, Any]]:
    raw = _get_redis().lrange(settings.WEBHOOK_DEAD_LETTER_KEY, 0, limit - 1)
    return [json.loads(item) for item in raw]


class NotificationTask(Task):
    """Celery task base that dead-letters jobs whose final attempt failed."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        attempts = self.request.retries + 1
        logger.error(
            f"Webhook job {task_id} for {kwargs.get('endpoint')} failed {attempts} times: {exc}"
        )
        try:
            dead_letter(dict(kwargs), str(exc), attempts)
        except redis.RedisError as redis_error:
            logger.error(f"Could not dead-letter webhook job {task_id}: {redis_error}")


@celery_app.task(bind=True, base=NotificationTask, name=NOTIFY_TASK_NAME)
def notify_availability(self, endpoint: str, sku: str, newStock: int):
    """Deliver one stock notification, retrying with exponential backoff."""
    try:
        return deliver_notification(endpoint, sku, newStock)
    except httpx.HTTPError as exc:
        max_attempts = settings.WEBHOOK_MAX_ATTEMPTS
        countdown = retry_countdown(self.request.retries)
        logger.warning(
            f"Webhook delivery to {endpoint} failed (attempt {self.request.retries + 1}/{max_attempts}): {exc}"
        )
        # Re-raises exc unchanged once max_retries is reached, which lands in on_failure
        raise self.retry(exc=exc, countdown=countdown, max_retries=max_attempts - 1)


class NotificationQueue:
    """
    Async producer for webhook jobs.

    The API holds one instance for the process; services receive it through
    the ``get_notification_queue`` dependency.
    """

    def __init__(self, task=notify_availability):
        self._task = task

    async def add(self, endpoint: str, sku: str, new_stock: int) -> None:
        job = StockNotification(endpoint=endpoint, sku=sku, new_stock=new_stock)
        # apply_async talks to the broker synchronously; keep it off the event loop
        await asyncio.to_thread(
            self._task.apply_async,
            kwargs=job.model_dump(by_alias=True),
        )
        logger.info(f"Queued stock notification for {sku} (stock={new_stock}) to {endpoint}")

    def close(self) -> None:
        global _redis_client
        if _redis_client is not None:
            _redis_client.close()
            _redis_client = None

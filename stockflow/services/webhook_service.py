"""
Stock-alert subscriptions and their fan-out.

A subscription matches a stock change when its SKU filter is empty or equal to
the changed SKU and the new stock is at or below its ``min_stock`` threshold.
Each match gets its own queued delivery job; identical events are not
deduplicated.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.models.webhook import WebhookSubscription
from stockflow.schemas.webhook import WebhookCreate
from stockflow.services.notification_queue import NotificationQueue

logger = logging.getLogger(__name__)


class WebhookService:
    def __init__(self, db: AsyncSession, queue: Optional[NotificationQueue] = None):
        self.db = db
        self.queue = queue

    async def create(self, data: WebhookCreate) -> WebhookSubscription:
        """Persist a new subscription. The endpoint is not probed."""
        subscription = WebhookSubscription(
            endpoint=data.endpoint,
            sku=data.sku,
            min_stock=data.min_stock,
        )
        self.db.add(subscription)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Registered webhook {subscription.id} for sku={subscription.sku or '*'} min_stock={subscription.min_stock}")
        return subscription

    async def find_for(self, sku: str, new_stock: int) -> List[WebhookSubscription]:
        query = select(WebhookSubscription).where(
            WebhookSubscription.min_stock >= new_stock,
            or_(WebhookSubscription.sku.is_(None), WebhookSubscription.sku == sku),
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def notify_all(self, sku: str, new_stock: int) -> int:
        """
        Enqueue one delivery job per matching subscription.

        Returns:
            Number of jobs enqueued
        """
        if self.queue is None:
            raise RuntimeError("WebhookService was created without a notification queue")

        subscriptions = await self.find_for(sku, new_stock)
        for subscription in subscriptions:
            await self.queue.add(subscription.endpoint, sku, new_stock)

        if subscriptions:
            logger.info(f"Enqueued {len(subscriptions)} stock notification(s) for {sku} at stock {new_stock}")
        return len(subscriptions)

from typing import AsyncGenerator, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockflow.database import async_session
from stockflow.services.auth_service import AuthService
from stockflow.services.notification_queue import NotificationQueue
from stockflow.services.order_service import OrderService
from stockflow.services.product_service import ProductService
from stockflow.services.webhook_service import WebhookService

_notification_queue: Optional[NotificationQueue] = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


def get_notification_queue() -> NotificationQueue:
    """Process-wide producer for stock notification jobs."""
    global _notification_queue
    if _notification_queue is None:
        _notification_queue = NotificationQueue()
    return _notification_queue


def close_notification_queue() -> None:
    global _notification_queue
    if _notification_queue is not None:
        _notification_queue.close()
        _notification_queue = None


def get_webhook_service(
    db: AsyncSession = Depends(get_db),
    queue: NotificationQueue = Depends(get_notification_queue),
) -> WebhookService:
    return WebhookService(db, queue)


def get_order_service(
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookService = Depends(get_webhook_service),
) -> OrderService:
    return OrderService(db, webhooks)


def get_product_service(db: AsyncSession = Depends(get_db)) -> ProductService:
    return ProductService(db)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)

from sqlalchemy import Column, Integer, String, DateTime

from stockflow.database import Base
from stockflow.core.utils import utcnow, new_uuid


class WebhookSubscription(Base):
    """
    Stock-alert subscription.

    Fires while a variation's stock is at or below ``min_stock``. A null ``sku``
    subscribes to every SKU.
    """
    __tablename__ = "webhook_subscriptions"

    id = Column(String(36), primary_key=True, default=new_uuid)
    endpoint = Column(String, nullable=False)
    sku = Column(String, nullable=True, index=True)
    min_stock = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<WebhookSubscription(id={self.id}, sku={self.sku}, min_stock={self.min_stock})>"

# stockflow/models/order.py
from sqlalchemy import Column, Integer, Float, DateTime, String, ForeignKey, Enum
from sqlalchemy.orm import relationship

from stockflow.database import Base
from stockflow.core.enums import OrderStatus
from stockflow.core.utils import utcnow, new_uuid


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_uuid)
    status = Column(
        Enum(OrderStatus, name="orderstatus"),
        nullable=False,
        default=OrderStatus.PLACED,
        index=True,
    )
    # Fixed at creation from the prices read when the order was validated
    total_amount = Column(Float, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status={self.status}, total={self.total_amount})>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    variation_id = Column(String(36), ForeignKey("product_variations.id"), nullable=True)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)  # Unit price at time of order

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

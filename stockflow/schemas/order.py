"""
Schemas for order placement, listing and status changes.
"""
from typing import Optional, List

from pydantic import Field

from stockflow.core.enums import OrderStatus
from stockflow.schemas.base import BaseSchema, TimestampedSchema


class OrderLine(BaseSchema):
    sku: str = Field(min_length=1)
    qty: int = Field(ge=1)

class OrderCreate(BaseSchema):
    items: List[OrderLine] = Field(min_length=1)

class OrderStatusUpdate(BaseSchema):
    status: OrderStatus

class OrderQuery(BaseSchema):
    cursor: Optional[str] = None
    search: Optional[str] = None
    limit: int = Field(default=10, ge=1, le=100)


class OrderItemRead(BaseSchema):
    id: str
    product_id: str
    variation_id: Optional[str] = None
    quantity: int
    price: float

class ProductSummary(BaseSchema):
    id: str
    name: str

class OrderItemDetail(OrderItemRead):
    product: ProductSummary

class OrderRead(TimestampedSchema):
    id: str
    status: OrderStatus
    total_amount: float
    items: List[OrderItemRead] = []

class OrderDetail(OrderRead):
    items: List[OrderItemDetail] = []

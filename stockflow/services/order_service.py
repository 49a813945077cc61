"""
Purpose: Order placement, listing and status changes.

Placing an order:
- Reads every requested variation by SKU and rejects the request before any
  write if a SKU is unknown or under-stocked
- Prices the order from the prices read at lookup time
- In one transaction, decrements stock with a guarded UPDATE (stock >= qty)
  for each line and inserts the order with its items
- After commit, fans out stock notifications; a failing notification never
  affects the committed order

Status moves forward only: PLACED -> PAID -> DISPATCHED.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import select, update, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stockflow.core.enums import OrderStatus, ORDER_TRANSITIONS
from stockflow.core.exceptions import NotFoundError, InsufficientStockError, InvalidTransitionError
from stockflow.core.utils import utcnow
from stockflow.models.order import Order, OrderItem
from stockflow.models.product import Product, ProductVariation
from stockflow.schemas.order import OrderLine, OrderQuery
from stockflow.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)


@dataclass
class _LineDetail:
    sku: str
    variation_id: str
    product_id: str
    price: float
    qty: int
    new_stock: Optional[int] = None


class OrderService:
    def __init__(self, db: AsyncSession, webhooks: Optional[WebhookService] = None):
        self.db = db
        self.webhooks = webhooks

    async def _load_lines(self, items: List[OrderLine]) -> List[_LineDetail]:
        """Validate each requested line against current stock. Pure read."""
        skus = {item.sku for item in items}
        result = await self.db.execute(
            select(ProductVariation).where(ProductVariation.sku.in_(skus))
        )
        variations: Dict[str, ProductVariation] = {v.sku: v for v in result.scalars().all()}

        details = []
        for item in items:
            variation = variations.get(item.sku)
            if variation is None:
                raise NotFoundError(f"SKU not found: {item.sku}")
            if variation.stock < item.qty:
                raise InsufficientStockError(f"Insufficient stock for SKU {item.sku}")
            details.append(_LineDetail(
                sku=item.sku,
                variation_id=variation.id,
                product_id=variation.product_id,
                price=variation.price,
                qty=item.qty,
            ))
        return details

    async def create_order(self, items: List[OrderLine]) -> Order:
        """
        Place an order and reserve its stock.

        Args:
            items: Requested lines of ``{sku, qty}``

        Returns:
            The committed order with its items

        Raises:
            NotFoundError: If any SKU does not exist
            InsufficientStockError: If any line asks for more than is in stock
        """
        details = await self._load_lines(items)
        total_amount = sum(d.price * d.qty for d in details)

        try:
            for d in details:
                result = await self.db.execute(
                    update(ProductVariation)
                    .where(ProductVariation.id == d.variation_id, ProductVariation.stock >= d.qty)
                    .values(stock=ProductVariation.stock - d.qty, updated_at=utcnow())
                    .returning(ProductVariation.stock)
                )
                new_stock = result.scalar_one_or_none()
                if new_stock is None:
                    # Sold concurrently, or the same SKU repeated beyond its stock
                    raise InsufficientStockError(f"Insufficient stock for SKU {d.sku}")
                d.new_stock = new_stock

            order = Order(
                status=OrderStatus.PLACED,
                total_amount=total_amount,
                items=[
                    OrderItem(
                        product_id=d.product_id,
                        variation_id=d.variation_id,
                        position=position,
                        quantity=d.qty,
                        price=d.price,
                    )
                    for position, d in enumerate(details)
                ],
            )
            self.db.add(order)
            await self.db.flush()
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Order {order.id} placed: {len(details)} line(s), total {total_amount}")

        await self._notify_stock_changes(details)
        return order

    async def _notify_stock_changes(self, details: List[_LineDetail]) -> None:
        if self.webhooks is None:
            return
        for d in details:
            try:
                await self.webhooks.notify_all(d.sku, d.new_stock)
            except Exception as e:
                logger.error(f"Stock notification for {d.sku} failed; order unaffected: {e}")

    async def get_order(self, order_id: str) -> Order:
        order = await self.db.get(Order, order_id, options=[selectinload(Order.items)])
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    async def update_status(self, order_id: str, new_status: OrderStatus) -> Order:
        """
        Advance an order's status.

        Raises:
            NotFoundError: If the order does not exist
            InvalidTransitionError: If the move is not allowed from the current status
        """
        order = await self.get_order(order_id)

        current = OrderStatus(order.status)
        if new_status not in ORDER_TRANSITIONS[current]:
            raise InvalidTransitionError(f"Cannot transition {current.value} -> {new_status.value}")

        order.status = new_status
        order.updated_at = utcnow()
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Order {order.id} moved {current.value} -> {new_status.value}")
        return order

    async def find_all(self, query: OrderQuery) -> List[Order]:
        """
        List orders newest first with items and their products loaded.

        ``search`` matches an order id substring or any item's product name
        substring. ``cursor`` continues strictly after the given order.
        """
        stmt = select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.product)
        )

        if query.search:
            stmt = stmt.where(
                or_(
                    Order.id.contains(query.search, autoescape=True),
                    Order.items.any(OrderItem.product.has(Product.name.contains(query.search, autoescape=True))),
                )
            )

        if query.cursor:
            anchor = await self.db.get(Order, query.cursor)
            if anchor is None:
                return []
            stmt = stmt.where(
                or_(
                    Order.created_at < anchor.created_at,
                    and_(Order.created_at == anchor.created_at, Order.id < anchor.id),
                )
            )

        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).limit(query.limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

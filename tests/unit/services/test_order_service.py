# tests/unit/services/test_order_service.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import select, func

from stockflow.core.enums import OrderStatus
from stockflow.core.exceptions import NotFoundError, InsufficientStockError, InvalidTransitionError
from stockflow.models.order import Order
from stockflow.models.product import ProductVariation
from stockflow.schemas.order import OrderLine, OrderQuery
from stockflow.services.order_service import OrderService


async def stock_of(db_session, sku: str) -> int:
    return await db_session.scalar(select(ProductVariation.stock).where(ProductVariation.sku == sku))


async def order_count(db_session) -> int:
    return await db_session.scalar(select(func.count()).select_from(Order))


def mock_webhooks():
    webhooks = MagicMock()
    webhooks.notify_all = AsyncMock(return_value=1)
    return webhooks


# --- create_order ---

@pytest.mark.asyncio
async def test_create_order_decrements_stock_and_totals(db_session, create_variation):
    # 1. Arrange
    await create_variation(sku="SKU-1", price=10.0, stock=5)
    service = OrderService(db_session)

    # 2. Act
    order = await service.create_order([OrderLine(sku="SKU-1", qty=2)])

    # 3. Assert
    assert order.status == OrderStatus.PLACED
    assert order.total_amount == 20.0
    assert len(order.items) == 1
    assert order.items[0].quantity == 2
    assert order.items[0].price == 10.0
    assert await stock_of(db_session, "SKU-1") == 3


@pytest.mark.asyncio
async def test_create_order_notifies_with_post_decrement_stock(db_session, create_variation):
    await create_variation(sku="SKU-1", price=10.0, stock=5)
    await create_variation(sku="SKU-2", price=4.5, stock=8, name="Socks")
    webhooks = mock_webhooks()
    service = OrderService(db_session, webhooks)

    order = await service.create_order([OrderLine(sku="SKU-1", qty=2), OrderLine(sku="SKU-2", qty=1)])

    assert order.total_amount == pytest.approx(24.5)
    assert [item.position for item in order.items] == [0, 1]
    webhooks.notify_all.assert_any_await("SKU-1", 3)
    webhooks.notify_all.assert_any_await("SKU-2", 7)
    assert webhooks.notify_all.await_count == 2


@pytest.mark.asyncio
async def test_create_order_unknown_sku_writes_nothing(db_session, create_variation):
    await create_variation(sku="SKU-1", stock=5)
    service = OrderService(db_session)

    with pytest.raises(NotFoundError, match="SKU not found: MISSING"):
        await service.create_order([OrderLine(sku="SKU-1", qty=1), OrderLine(sku="MISSING", qty=1)])

    assert await stock_of(db_session, "SKU-1") == 5
    assert await order_count(db_session) == 0


@pytest.mark.asyncio
async def test_create_order_insufficient_stock(db_session, create_variation):
    await create_variation(sku="SKU-1", stock=1)
    webhooks = mock_webhooks()
    service = OrderService(db_session, webhooks)

    with pytest.raises(InsufficientStockError):
        await service.create_order([OrderLine(sku="SKU-1", qty=2)])

    assert await stock_of(db_session, "SKU-1") == 1
    assert await order_count(db_session) == 0
    webhooks.notify_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_order_repeated_sku_beyond_stock_rolls_back(db_session, create_variation):
    """Each line passes the read check on its own; the guarded decrement catches the total."""
    await create_variation(sku="SKU-1", stock=5)
    service = OrderService(db_session)

    with pytest.raises(InsufficientStockError):
        await service.create_order([OrderLine(sku="SKU-1", qty=3), OrderLine(sku="SKU-1", qty=3)])

    assert await stock_of(db_session, "SKU-1") == 5
    assert await order_count(db_session) == 0


@pytest.mark.asyncio
async def test_create_order_survives_notification_failure(db_session, create_variation):
    await create_variation(sku="SKU-1", stock=5)
    webhooks = MagicMock()
    webhooks.notify_all = AsyncMock(side_effect=RuntimeError("broker down"))
    service = OrderService(db_session, webhooks)

    order = await service.create_order([OrderLine(sku="SKU-1", qty=5)])

    assert order.id is not None
    assert await stock_of(db_session, "SKU-1") == 0
    assert await order_count(db_session) == 1


# --- update_status ---

@pytest.mark.asyncio
async def test_update_status_moves_forward(db_session, create_variation):
    await create_variation(sku="SKU-1", stock=5)
    service = OrderService(db_session)
    order = await service.create_order([OrderLine(sku="SKU-1", qty=1)])

    paid = await service.update_status(order.id, OrderStatus.PAID)
    assert paid.status == OrderStatus.PAID

    dispatched = await service.update_status(order.id, OrderStatus.DISPATCHED)
    assert dispatched.status == OrderStatus.DISPATCHED


@pytest.mark.asyncio
@pytest.mark.parametrize("first_move, rejected", [
    (None, OrderStatus.DISPATCHED),          # skipping PAID
    (None, OrderStatus.PLACED),              # same state
    (OrderStatus.PAID, OrderStatus.PLACED),  # backwards
])
async def test_update_status_rejects_invalid_transitions(db_session, create_variation, first_move, rejected):
    await create_variation(sku="SKU-1", stock=5)
    service = OrderService(db_session)
    order = await service.create_order([OrderLine(sku="SKU-1", qty=1)])
    if first_move:
        await service.update_status(order.id, first_move)

    with pytest.raises(InvalidTransitionError):
        await service.update_status(order.id, rejected)


@pytest.mark.asyncio
async def test_update_status_missing_order(db_session):
    service = OrderService(db_session)
    with pytest.raises(NotFoundError):
        await service.update_status("does-not-exist", OrderStatus.PAID)


# --- find_all ---

@pytest.mark.asyncio
async def test_find_all_pages_with_cursor(db_session, create_variation):
    await create_variation(sku="SKU-1", stock=10)
    service = OrderService(db_session)
    created = [await service.create_order([OrderLine(sku="SKU-1", qty=1)]) for _ in range(3)]

    first_page = await service.find_all(OrderQuery(limit=2))
    second_page = await service.find_all(OrderQuery(limit=2, cursor=first_page[-1].id))

    assert len(first_page) == 2
    assert len(second_page) == 1
    seen = [o.id for o in first_page + second_page]
    assert sorted(seen) == sorted(o.id for o in created)
    assert first_page[0].created_at >= first_page[1].created_at >= second_page[0].created_at


@pytest.mark.asyncio
async def test_find_all_unknown_cursor_is_empty(db_session, create_variation):
    await create_variation(sku="SKU-1", stock=10)
    service = OrderService(db_session)
    await service.create_order([OrderLine(sku="SKU-1", qty=1)])

    assert await service.find_all(OrderQuery(cursor="no-such-order")) == []


@pytest.mark.asyncio
async def test_find_all_search_by_product_name_and_id(db_session, create_variation):
    await create_variation(sku="SHIRT-1", stock=10, name="Blue Shirt")
    await create_variation(sku="MUG-1", stock=10, name="Coffee Mug")
    service = OrderService(db_session)
    shirt_order = await service.create_order([OrderLine(sku="SHIRT-1", qty=1)])
    mug_order = await service.create_order([OrderLine(sku="MUG-1", qty=1)])

    by_name = await service.find_all(OrderQuery(search="Shirt"))
    assert [o.id for o in by_name] == [shirt_order.id]
    assert by_name[0].items[0].product.name == "Blue Shirt"

    by_id = await service.find_all(OrderQuery(search=mug_order.id[:8]))
    assert [o.id for o in by_id] == [mug_order.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("search", ["%", "_", "Blue_Shirt", "Blue%"])
async def test_find_all_search_treats_wildcards_literally(db_session, create_variation, search):
    await create_variation(sku="SHIRT-1", stock=10, name="Blue Shirt")
    await create_variation(sku="MUG-1", stock=10, name="Coffee Mug")
    service = OrderService(db_session)
    await service.create_order([OrderLine(sku="SHIRT-1", qty=1)])
    await service.create_order([OrderLine(sku="MUG-1", qty=1)])

    assert await service.find_all(OrderQuery(search=search)) == []


@pytest.mark.asyncio
async def test_find_all_search_matches_literal_percent_in_name(db_session, create_variation):
    await create_variation(sku="SALE-1", stock=10, name="50% Off Shirt")
    await create_variation(sku="SHIRT-1", stock=10, name="Blue Shirt")
    service = OrderService(db_session)
    sale_order = await service.create_order([OrderLine(sku="SALE-1", qty=1)])
    await service.create_order([OrderLine(sku="SHIRT-1", qty=1)])

    found = await service.find_all(OrderQuery(search="50%"))

    assert [o.id for o in found] == [sale_order.id]

"""
Order placement (SELLER), listing and status changes (ADMIN).
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from stockflow.core.enums import Role
from stockflow.core.exceptions import NotFoundError, InsufficientStockError, InvalidTransitionError
from stockflow.core.security import require_role
from stockflow.dependencies import get_order_service
from stockflow.schemas.order import OrderCreate, OrderStatusUpdate, OrderQuery, OrderRead, OrderDetail
from stockflow.services.order_service import OrderService

router = APIRouter(prefix="/v1/orders", tags=["orders"])


@router.get("", response_model=List[OrderDetail], dependencies=[Depends(require_role(Role.ADMIN))])
async def list_orders(
    cursor: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    order_service: OrderService = Depends(get_order_service)
):
    """
    List orders newest first. Pass the last order id of a page as ``cursor``
    to get the next page.
    """
    return await order_service.find_all(OrderQuery(cursor=cursor, search=search, limit=limit))


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(Role.SELLER))],
)
async def create_order(
    body: OrderCreate,
    order_service: OrderService = Depends(get_order_service)
):
    try:
        return await order_service.create_order(body.items)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InsufficientStockError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    order_service: OrderService = Depends(get_order_service)
):
    try:
        return await order_service.update_status(order_id, body.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

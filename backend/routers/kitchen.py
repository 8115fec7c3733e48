import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.exceptions import LedgerError, NotFound
from db.database import get_async_session
from db.order import (
    DONE,
    KITCHEN_STATUSES,
    PREPPING,
    Order as OrderModel,
    OrderItem as OrderItemModel,
    OrderItemOption as OrderItemOptionModel,
)
from db.transactions import run_in_transaction
from routers.prepared_stock import ledger_http_exception
from schemas.kitchen import (
    ClearDoneResponse,
    KitchenQueueItem,
    KitchenQueueOrder,
    KitchenStatusOut,
    KitchenStatusUpdate,
)
from services.ledger import PreparedStockLedger

logger = logging.getLogger(__name__)

router = APIRouter()

# Statuses that mean food is being (or has been) pulled from prepared stock
CONSUMING_STATUSES = (PREPPING, DONE)


def _utcnow() -> datetime:
    # Columns are naive DateTime holding UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _serialize_queue_order(o: OrderModel) -> KitchenQueueOrder:
    items = []
    for oi in (o.items or []):
        mi = getattr(oi, "menu_item", None)
        items.append(
            KitchenQueueItem(
                order_item_id=oi.id,
                menu_item_id=oi.menu_item_id,
                name=getattr(mi, "name", None) if mi else None,
                quantity=int(oi.quantity),
                options=[
                    opt.menu_item.name
                    for opt in (oi.options or [])
                    if getattr(opt, "menu_item", None) is not None
                ],
            )
        )
    return KitchenQueueOrder(
        order_id=o.id,
        placed_at=o.created_at,
        status=o.status,
        dine_option=o.dine_option,
        notes=o.notes,
        items=items,
    )


@router.get("/queue", response_model=List[KitchenQueueOrder])
async def get_queue(db: AsyncSession = Depends(get_async_session)):
    """Active kitchen orders (queued, prepping, and done-but-not-cleared), oldest first."""
    res = await db.execute(
        select(OrderModel)
        .options(
            selectinload(OrderModel.items).selectinload(OrderItemModel.menu_item),
            selectinload(OrderModel.items)
            .selectinload(OrderItemModel.options)
            .selectinload(OrderItemOptionModel.menu_item),
        )
        .where(or_(OrderModel.status != DONE, OrderModel.cleared_at.is_(None)))
        .order_by(OrderModel.created_at.asc(), OrderModel.id.asc())
    )
    return [_serialize_queue_order(o) for o in res.scalars().all()]


async def _set_status(db: AsyncSession, order_id: int, new_status: str) -> KitchenStatusOut:
    if new_status not in KITCHEN_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid status '{new_status}'")

    ledger = PreparedStockLedger(db)

    async def _work() -> KitchenStatusOut:
        consumed = False
        if new_status in CONSUMING_STATUSES:
            # Same transaction as the status write; a shortage rejects the transition.
            result = await ledger.consume_for_order(order_id)
            consumed = not result.already_consumed
        o = (await db.execute(select(OrderModel).where(OrderModel.id == order_id))).scalar_one_or_none()
        if o is None:
            raise NotFound(f"Order {order_id} not found")
        o.status = new_status
        o.completed_at = _utcnow() if new_status == DONE else None
        if new_status != DONE:
            o.cleared_at = None
        await db.flush()
        return KitchenStatusOut(order_id=o.id, status=o.status, completed_at=o.completed_at, consumed=consumed)

    try:
        out = await run_in_transaction(db, _work)
    except LedgerError as e:
        raise ledger_http_exception(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("set status failed for order %s", order_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update order status: {e}",
        )
    logger.info("Order %s -> %s", order_id, new_status)
    return out


@router.post("/orders/{order_id}/status", response_model=KitchenStatusOut)
async def set_order_status(
    order_id: int,
    payload: KitchenStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Move an order through queued -> prepping -> done.

    Entering prepping or done deducts the order's prepared servings exactly once.
    A 409 means prepared stock is short and the status was left unchanged.
    """
    return await _set_status(db, order_id, payload.status)


@router.post("/orders/{order_id}/complete", response_model=KitchenStatusOut)
async def complete_order(order_id: int, db: AsyncSession = Depends(get_async_session)):
    """Convenience endpoint to mark an order done."""
    return await _set_status(db, order_id, DONE)


@router.post("/clear-done", response_model=ClearDoneResponse)
async def clear_done(db: AsyncSession = Depends(get_async_session)):
    """Hide every currently done order from the kitchen display."""
    try:
        res = await db.execute(
            update(OrderModel)
            .where(OrderModel.status == DONE)
            .where(OrderModel.cleared_at.is_(None))
            .values(cleared_at=func.now())
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("clear_done failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to clear done orders: {e}",
        )
    return ClearDoneResponse(cleared=int(getattr(res, "rowcount", 0) or 0))

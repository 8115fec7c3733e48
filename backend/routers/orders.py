import logging
from decimal import ROUND_HALF_UP, Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import settings
from db.database import get_async_session
from db.menu import MenuItem as MenuItemModel
from db.order import (
    QUEUED,
    Order as OrderModel,
    OrderItem as OrderItemModel,
    OrderItemOption as OrderItemOptionModel,
)
from schemas.orders import (
    KioskOrderCreate,
    KioskOrderCreated,
    OrderItemRead,
    OrderOptionRead,
    OrderRead,
)
from services.ledger import PreparedStockLedger

logger = logging.getLogger(__name__)

router = APIRouter()

CENT = Decimal("0.01")


def _money(x: Decimal) -> Decimal:
    return Decimal(x).quantize(CENT, rounding=ROUND_HALF_UP)


def _serialize_order(o: OrderModel, is_consumed: bool) -> OrderRead:
    items_out = []
    for oi in (o.items or []):
        mi = getattr(oi, "menu_item", None)
        items_out.append(
            OrderItemRead(
                id=oi.id,
                menu_item_id=oi.menu_item_id,
                name=getattr(mi, "name", None) if mi else None,
                quantity=int(oi.quantity),
                unit_price=float(oi.unit_price or 0),
                options=[
                    OrderOptionRead(
                        menu_item_id=opt.menu_item_id,
                        name=getattr(opt.menu_item, "name", None) if opt.menu_item else None,
                        quantity=int(opt.quantity),
                    )
                    for opt in (oi.options or [])
                ],
            )
        )
    return OrderRead(
        id=o.id,
        status=o.status,
        dine_option=o.dine_option,
        notes=o.notes,
        subtotal=float(o.subtotal or 0),
        tax_amount=float(o.tax_amount or 0),
        total=float(o.total or 0),
        created_at=o.created_at,
        completed_at=o.completed_at,
        is_consumed=is_consumed,
        items=items_out,
    )


@router.post("/", response_model=KioskOrderCreated, status_code=status.HTTP_201_CREATED)
async def create_kiosk_order(
    payload: KioskOrderCreate,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Place a paid kiosk order.

    Prices are computed server-side: unit price = item price + option surcharges.
    The order starts 'queued' so the kitchen sees it; prepared stock is only
    deducted when the kitchen starts it.
    """
    item_ids = {line.menu_item_id for line in payload.items}
    for line in payload.items:
        item_ids.update(opt.menu_item_id for opt in line.options)

    res = await db.execute(
        select(MenuItemModel)
        .where(MenuItemModel.id.in_(sorted(item_ids)))
        .where(MenuItemModel.is_active == True)  # noqa: E712
    )
    menu_by_id = {mi.id: mi for mi in res.scalars().all()}
    missing = sorted(item_ids - set(menu_by_id))
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown menu item {missing[0]}" if len(missing) == 1 else f"Unknown menu items {missing}",
        )

    subtotal = Decimal("0")
    line_build = []
    for line in payload.items:
        base = menu_by_id[line.menu_item_id]
        surcharge = sum(
            (Decimal(str(menu_by_id[opt.menu_item_id].option_surcharge or 0)) * opt.quantity for opt in line.options),
            Decimal("0"),
        )
        unit_price = _money(Decimal(str(base.price or 0)) + surcharge)
        subtotal += unit_price * line.quantity
        line_build.append((line, unit_price))

    subtotal = _money(subtotal)
    tax_amount = _money(subtotal * settings.sales_tax_rate)
    total = subtotal + tax_amount

    if payload.pay_amount is not None and abs(Decimal(str(payload.pay_amount)) - total) > CENT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Mismatched total (client {payload.pay_amount} vs server {total})",
        )

    try:
        order = OrderModel(
            status=QUEUED,
            dine_option=payload.dine_option,
            notes=payload.notes,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=total,
        )
        for line, unit_price in line_build:
            order.items.append(
                OrderItemModel(
                    menu_item_id=line.menu_item_id,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    options=[
                        OrderItemOptionModel(menu_item_id=opt.menu_item_id, quantity=opt.quantity)
                        for opt in line.options
                    ],
                )
            )
        db.add(order)
        await db.commit()
        await db.refresh(order)
    except Exception as e:
        await db.rollback()
        logger.exception("create_kiosk_order failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create order: {e}",
        )

    logger.info("Kiosk order %s placed (%d lines, total %s)", order.id, len(line_build), total)
    return KioskOrderCreated(
        order_id=order.id,
        subtotal=float(subtotal),
        tax_amount=float(tax_amount),
        total=float(total),
    )


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(order_id: int, db: AsyncSession = Depends(get_async_session)):
    res = await db.execute(
        select(OrderModel)
        .options(
            selectinload(OrderModel.items).selectinload(OrderItemModel.menu_item),
            selectinload(OrderModel.items)
            .selectinload(OrderItemModel.options)
            .selectinload(OrderItemOptionModel.menu_item),
        )
        .where(OrderModel.id == order_id)
    )
    o = res.scalar_one_or_none()
    if not o:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return _serialize_order(o, await PreparedStockLedger(db).is_consumed(order_id))

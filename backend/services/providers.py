"""
Read-side collaborators of the prepared-stock ledger, backed by the relational store.

- RecipeInventoryProvider: recipe lines per menu item, raw inventory levels, deductions.
- OrderProvider: order lines with their selected options and category kinds.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.inventory.item import InventoryItem as InventoryItemModel
from db.inventory.movement import InventoryMovement as InventoryMovementModel
from db.menu import MenuItem as MenuItemModel
from db.order import (
    Order as OrderModel,
    OrderItem as OrderItemModel,
    OrderItemOption as OrderItemOptionModel,
)
from db.recipe import RecipeLine as RecipeLineModel
from services.consumption import OrderLine, OrderLineOption


@dataclass(frozen=True)
class RecipeLine:
    menu_item_id: int
    ingredient_id: int
    quantity_per_serving: Decimal
    unit: str


class RecipeInventoryProvider:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_recipe(self, menu_item_id: int) -> List[RecipeLine]:
        res = await self.db.execute(
            select(RecipeLineModel)
            .where(RecipeLineModel.menu_item_id == menu_item_id)
            .order_by(RecipeLineModel.ingredient_id.asc())
        )
        return [
            RecipeLine(
                menu_item_id=r.menu_item_id,
                ingredient_id=r.ingredient_id,
                quantity_per_serving=Decimal(str(r.quantity_per_serving)),
                unit=r.unit,
            )
            for r in res.scalars().all()
        ]

    async def get_inventory(self, ingredient_ids: Iterable[int], *, lock: bool = False) -> Dict[int, InventoryItemModel]:
        """Load inventory rows by id. With lock=True rows are locked in id order."""
        ids = sorted(set(ingredient_ids))
        if not ids:
            return {}
        stmt = (
            select(InventoryItemModel)
            .where(InventoryItemModel.id.in_(ids))
            .order_by(InventoryItemModel.id.asc())
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.with_for_update()
        res = await self.db.execute(stmt)
        return {it.id: it for it in res.scalars().all()}

    async def decrement(
        self,
        item: InventoryItemModel,
        units: Decimal,
        *,
        reason: Optional[str],
        source_type: str,
        source_id: Optional[int],
    ) -> None:
        item.current_quantity = Decimal(str(item.current_quantity)) - units
        self.db.add(
            InventoryMovementModel(
                inventory_item_id=item.id,
                change=-units,
                reason=reason,
                source_type=source_type,
                source_id=source_id,
            )
        )


class OrderProvider:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_order(self, order_id: int) -> Optional[OrderModel]:
        res = await self.db.execute(
            select(OrderModel).where(OrderModel.id == order_id).with_for_update()
        )
        return res.scalar_one_or_none()

    async def get_order_lines(self, order_id: int) -> List[OrderLine]:
        res = await self.db.execute(
            select(OrderItemModel)
            .options(
                selectinload(OrderItemModel.menu_item).selectinload(MenuItemModel.category),
                selectinload(OrderItemModel.options)
                .selectinload(OrderItemOptionModel.menu_item)
                .selectinload(MenuItemModel.category),
            )
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.id.asc())
        )
        lines: List[OrderLine] = []
        for oi in res.scalars().all():
            mi = oi.menu_item
            options = [
                OrderLineOption(
                    menu_item_id=opt.menu_item_id,
                    category_id=opt.menu_item.category_id,
                    category_kind=opt.menu_item.category.kind,
                    quantity=int(opt.quantity or 0),
                    name=opt.menu_item.name,
                )
                for opt in (oi.options or [])
            ]
            lines.append(
                OrderLine(
                    menu_item_id=oi.menu_item_id,
                    category_id=mi.category_id,
                    category_kind=mi.category.kind,
                    quantity=int(oi.quantity or 0),
                    options=options,
                    name=mi.name,
                )
            )
        return lines

"""
Prepared-stock ledger.

Owns the per-menu-item prepared-serving counters (PreparedStock) and the
per-order consumption markers (ConsumptionRecord). Every public method runs
inside the caller's transaction and never commits: the caller commits (or rolls
back) at its transaction boundary, see db.transactions.run_in_transaction.

All checks run before the first write, so a rejected call leaves no partial
deduction behind even before rollback.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_CEILING, Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    InsufficientInventory,
    InsufficientPreparedStock,
    InvalidInput,
    NoRecipeConfigured,
    NotFound,
    Shortage,
)
from db.menu import Category as CategoryModel, MenuItem as MenuItemModel, PREPARED_KINDS
from db.prepared import ConsumptionRecord as ConsumptionRecordModel, PreparedStock as PreparedStockModel
from db.transactions import storage_guard
from services.consumption import compute_consumption
from services.providers import OrderProvider, RecipeInventoryProvider

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


@dataclass
class ConsumptionResult:
    order_id: int
    already_consumed: bool = False
    consumed: Dict[int, Decimal] = field(default_factory=dict)


@dataclass
class StockLevel:
    menu_item_id: int
    name: str
    category_kind: Optional[str]
    servings_available: Decimal
    level: str  # 'out' | 'low' | 'ok'


def _servings_count(servings) -> int:
    if isinstance(servings, bool) or servings is None:
        raise InvalidInput("servings must be a positive whole number")
    if isinstance(servings, int):
        n = servings
    else:
        try:
            d = Decimal(str(servings))
        except (InvalidOperation, ValueError):
            raise InvalidInput("servings must be a positive whole number")
        if not d.is_finite() or d != d.to_integral_value():
            raise InvalidInput("servings must be a positive whole number")
        n = int(d)
    if n <= 0:
        raise InvalidInput("servings must be > 0")
    return n


def _level(servings: Decimal, low: Decimal) -> str:
    if servings <= 0:
        return "out"
    if servings < low:
        return "low"
    return "ok"


class PreparedStockLedger:
    def __init__(
        self,
        db: AsyncSession,
        *,
        recipes: Optional[RecipeInventoryProvider] = None,
        orders: Optional[OrderProvider] = None,
        low_stock_servings: Optional[Decimal] = None,
    ):
        self.db = db
        self.recipes = recipes or RecipeInventoryProvider(db)
        self.orders = orders or OrderProvider(db)
        self.low_stock_servings = (
            settings.low_stock_servings if low_stock_servings is None else Decimal(low_stock_servings)
        )

    def _insert(self):
        dialect = self.db.bind.dialect.name if self.db.bind is not None else "postgresql"
        if dialect == "sqlite":
            return sqlite.insert
        return postgresql.insert

    async def _menu_item(self, menu_item_id: int) -> MenuItemModel:
        res = await self.db.execute(
            select(MenuItemModel, CategoryModel.kind)
            .join(CategoryModel, MenuItemModel.category_id == CategoryModel.id)
            .where(MenuItemModel.id == menu_item_id)
        )
        row = res.first()
        if not row:
            raise NotFound(f"Menu item {menu_item_id} not found")
        mi, kind = row
        if kind not in PREPARED_KINDS:
            raise InvalidInput(f"{mi.name} is not an entree or side and has no prepared stock")
        return mi

    async def _names(self, menu_item_ids) -> Dict[int, str]:
        ids = list(menu_item_ids)
        if not ids:
            return {}
        res = await self.db.execute(
            select(MenuItemModel.id, MenuItemModel.name).where(MenuItemModel.id.in_(ids))
        )
        return {mid: name for (mid, name) in res.all()}

    async def cook_batch(self, menu_item_id: int, servings) -> Decimal:
        """Convert raw inventory into `servings` prepared servings; return the new count."""
        n = _servings_count(servings)
        async with storage_guard("cook batch"):
            menu_item = await self._menu_item(menu_item_id)
            recipe = await self.recipes.get_recipe(menu_item_id)
        if not recipe:
            raise NoRecipeConfigured(menu_item_id, menu_item.name)

        async with storage_guard("cook batch"):
            inventory = await self.recipes.get_inventory([r.ingredient_id for r in recipe], lock=True)

        needed: Dict[int, Decimal] = {}
        shortages: List[Shortage] = []
        for line in recipe:
            inv = inventory.get(line.ingredient_id)
            if inv is None:
                raise NotFound(f"Inventory item {line.ingredient_id} not found")
            per_unit = Decimal(str(inv.servings_per_unit))
            if per_unit <= 0:
                raise InvalidInput(f"Inventory item '{inv.name}' has no servings_per_unit configured")
            units = (n * line.quantity_per_serving / per_unit).to_integral_value(rounding=ROUND_CEILING)
            needed[line.ingredient_id] = needed.get(line.ingredient_id, ZERO) + units

        for ingredient_id, units in needed.items():
            inv = inventory[ingredient_id]
            have = Decimal(str(inv.current_quantity))
            if have < units:
                shortages.append(Shortage(id=ingredient_id, name=inv.name, have=have, need=units))
        if shortages:
            raise InsufficientInventory(shortages, prefix=f"Not enough inventory to cook {n} x {menu_item.name}")

        reason = f"Batch cook: {n} x {menu_item.name}"
        for ingredient_id, units in needed.items():
            await self.recipes.decrement(
                inventory[ingredient_id],
                units,
                reason=reason,
                source_type="batch_cook",
                source_id=menu_item_id,
            )

        stock_tbl = PreparedStockModel.__table__
        upsert = (
            self._insert()(stock_tbl)
            .values(menu_item_id=menu_item_id, servings_available=Decimal(n))
            .on_conflict_do_update(
                index_elements=[stock_tbl.c.menu_item_id],
                set_={
                    "servings_available": stock_tbl.c.servings_available + Decimal(n),
                    "updated_at": func.now(),
                },
            )
        )
        async with storage_guard("cook batch"):
            await self.db.execute(upsert)
            await self.db.flush()
            res = await self.db.execute(
                select(stock_tbl.c.servings_available).where(stock_tbl.c.menu_item_id == menu_item_id)
            )
        available = Decimal(str(res.scalar_one()))
        logger.info("Cooked %d x %s (menu item %s); %s servings available", n, menu_item.name, menu_item_id, available)
        return available

    async def consume_for_order(self, order_id: int) -> ConsumptionResult:
        """Deduct an order's prepared servings at most once."""
        if isinstance(order_id, bool) or not isinstance(order_id, int):
            raise InvalidInput("order_id must be an integer")

        async with storage_guard("consume order"):
            order = await self.orders.lock_order(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")

        existing = await self.db.execute(
            select(ConsumptionRecordModel.order_id).where(ConsumptionRecordModel.order_id == order_id)
        )
        if existing.scalar_one_or_none() is not None:
            logger.debug("Order %s already consumed; skipping", order_id)
            return ConsumptionResult(order_id=order_id, already_consumed=True)

        lines = await self.orders.get_order_lines(order_id)
        needs = compute_consumption(lines)

        if needs:
            async with storage_guard("consume order"):
                res = await self.db.execute(
                    select(PreparedStockModel)
                    .where(PreparedStockModel.menu_item_id.in_(sorted(needs)))
                    .order_by(PreparedStockModel.menu_item_id.asc())
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
            stocks = {s.menu_item_id: s for s in res.scalars().all()}

            short = []
            for menu_item_id in sorted(needs):
                stock = stocks.get(menu_item_id)
                have = Decimal(str(stock.servings_available)) if stock is not None else ZERO
                if have < needs[menu_item_id]:
                    short.append((menu_item_id, have, needs[menu_item_id]))
            if short:
                names = await self._names(mid for (mid, _, _) in short)
                raise InsufficientPreparedStock(
                    [Shortage(id=mid, name=names.get(mid), have=have, need=need) for (mid, have, need) in short]
                )

            for menu_item_id, need in needs.items():
                stock = stocks[menu_item_id]
                stock.servings_available = (Decimal(str(stock.servings_available)) - need).quantize(CENT)

        self.db.add(ConsumptionRecordModel(order_id=order_id))
        async with storage_guard("consume order"):
            await self.db.flush()

        logger.info("Consumed prepared stock for order %s: %s", order_id, {k: str(v) for k, v in needs.items()})
        return ConsumptionResult(order_id=order_id, consumed=needs)

    async def is_consumed(self, order_id: int) -> bool:
        res = await self.db.execute(
            select(func.count())
            .select_from(ConsumptionRecordModel)
            .where(ConsumptionRecordModel.order_id == order_id)
        )
        return int(res.scalar_one() or 0) > 0

    async def discard_all(self) -> int:
        """End-of-day: zero every counter. Consumption records are kept."""
        async with storage_guard("discard prepared stock"):
            res = await self.db.execute(
                update(PreparedStockModel)
                .values(servings_available=ZERO, updated_at=func.now())
            )
        cleared = int(getattr(res, "rowcount", 0) or 0)
        logger.info("Discarded prepared stock for %d menu items", cleared)
        return cleared

    async def snapshot(self) -> List[StockLevel]:
        res = await self.db.execute(
            select(MenuItemModel.id, MenuItemModel.name, CategoryModel.kind, PreparedStockModel.servings_available)
            .join(CategoryModel, MenuItemModel.category_id == CategoryModel.id)
            .outerjoin(PreparedStockModel, PreparedStockModel.menu_item_id == MenuItemModel.id)
            .where(CategoryModel.kind.in_(PREPARED_KINDS))
            .where(MenuItemModel.is_active == True)  # noqa: E712
            .order_by(func.lower(MenuItemModel.name).asc())
        )
        out: List[StockLevel] = []
        for (mid, name, kind, servings) in res.all():
            servings = Decimal(str(servings)) if servings is not None else ZERO
            out.append(
                StockLevel(
                    menu_item_id=mid,
                    name=name,
                    category_kind=kind,
                    servings_available=servings,
                    level=_level(servings, self.low_stock_servings),
                )
            )
        return out

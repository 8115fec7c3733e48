import asyncio
import sys
from pathlib import Path
from decimal import Decimal

"""
Seed demo menu, inventory and recipes into the Postgres DB.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select

from db.database import async_session_maker, create_db_and_tables
from db.inventory.item import InventoryItem
from db.menu import ENTREE, SIDE, Category, MenuItem
from db.recipe import RecipeLine


CATEGORIES = [
    # name, kind, display_order
    ("Combos", None, 0),
    ("Entrees", ENTREE, 1),
    ("Sides", SIDE, 2),
    ("Drinks", None, 3),
]

MENU_ITEMS = [
    # name, category, price, option_surcharge
    ("Bowl", "Combos", Decimal("8.30"), Decimal("0")),
    ("Plate", "Combos", Decimal("9.80"), Decimal("0")),
    ("Bigger Plate", "Combos", Decimal("11.30"), Decimal("0")),
    ("Orange Chicken", "Entrees", Decimal("5.20"), Decimal("0")),
    ("Beijing Beef", "Entrees", Decimal("5.20"), Decimal("0")),
    ("Honey Walnut Shrimp", "Entrees", Decimal("6.70"), Decimal("1.50")),
    ("Fried Rice", "Sides", Decimal("4.40"), Decimal("0")),
    ("Chow Mein", "Sides", Decimal("4.40"), Decimal("0")),
    ("Super Greens", "Sides", Decimal("4.40"), Decimal("0")),
    ("Fountain Drink", "Drinks", Decimal("2.10"), Decimal("0")),
]

INVENTORY = [
    # name, unit, current_quantity, servings_per_unit
    ("Chicken Thigh", "case", Decimal("20"), Decimal("40")),
    ("Beef Strips", "case", Decimal("10"), Decimal("30")),
    ("Shrimp", "bag", Decimal("8"), Decimal("25")),
    ("Orange Sauce", "jug", Decimal("12"), Decimal("60")),
    ("Rice", "bag", Decimal("15"), Decimal("1")),
    ("Egg", "flat", Decimal("10"), Decimal("30")),
    ("Noodles", "case", Decimal("10"), Decimal("24")),
    ("Mixed Greens", "case", Decimal("6"), Decimal("20")),
]

RECIPES = [
    # menu item, ingredient, quantity per serving, unit
    ("Orange Chicken", "Chicken Thigh", Decimal("1"), "portion"),
    ("Orange Chicken", "Orange Sauce", Decimal("1"), "portion"),
    ("Beijing Beef", "Beef Strips", Decimal("1"), "portion"),
    ("Honey Walnut Shrimp", "Shrimp", Decimal("1"), "portion"),
    ("Fried Rice", "Rice", Decimal("0.25"), "bag"),
    ("Fried Rice", "Egg", Decimal("2"), "each"),
    ("Chow Mein", "Noodles", Decimal("1"), "portion"),
    ("Super Greens", "Mixed Greens", Decimal("1"), "portion"),
]


async def get_or_create(session, model, name: str, **fields):
    result = await session.execute(select(model).where(func.lower(model.name) == name.strip().lower()))
    obj = result.scalar_one_or_none()
    if obj:
        return obj
    obj = model(name=name.strip(), **fields)
    session.add(obj)
    await session.flush()
    return obj


async def main() -> None:
    await create_db_and_tables()
    async with async_session_maker() as session:
        categories = {}
        for name, kind, order in CATEGORIES:
            categories[name] = await get_or_create(session, Category, name, kind=kind, display_order=order)

        items = {}
        for name, cat, price, surcharge in MENU_ITEMS:
            items[name] = await get_or_create(
                session,
                MenuItem,
                name,
                category_id=categories[cat].id,
                price=price,
                option_surcharge=surcharge,
            )

        ingredients = {}
        for name, unit, qty, per_unit in INVENTORY:
            ingredients[name] = await get_or_create(
                session,
                InventoryItem,
                name,
                unit=unit,
                current_quantity=qty,
                servings_per_unit=per_unit,
            )

        created = 0
        for item_name, ing_name, qty, unit in RECIPES:
            mi, ing = items[item_name], ingredients[ing_name]
            res = await session.execute(
                select(RecipeLine).where(RecipeLine.menu_item_id == mi.id, RecipeLine.ingredient_id == ing.id)
            )
            if res.scalar_one_or_none():
                continue
            session.add(RecipeLine(menu_item_id=mi.id, ingredient_id=ing.id, quantity_per_serving=qty, unit=unit))
            created += 1

        await session.commit()
        print(
            f"Seeded categories: {len(categories)}, menu items: {len(items)}, "
            f"inventory items: {len(ingredients)}, new recipe lines: {created}"
        )


if __name__ == "__main__":
    asyncio.run(main())

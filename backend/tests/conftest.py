import os
import sys
from decimal import Decimal
from pathlib import Path

# Settings are read at import time; point them at SQLite before anything imports core.config.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOW_STOCK_SERVINGS", "5")

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import httpx
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from db.database import Base, get_async_session, load_models
from db.inventory.item import InventoryItem
from db.menu import ENTREE, SIDE, Category, MenuItem
from db.order import Order, OrderItem, OrderItemOption
from db.recipe import RecipeLine
from main import app


@pytest_asyncio.fixture
async def engine(tmp_path):
    load_models()
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def menu(session_maker):
    """A small menu: combo containers, two entrees, three sides, a drink; plus inventory and recipes."""
    async with session_maker() as s:
        combos = Category(name="Combos", kind=None, display_order=0)
        entrees = Category(name="Entrees", kind=ENTREE, display_order=1)
        sides = Category(name="Sides", kind=SIDE, display_order=2)
        drinks = Category(name="Drinks", kind=None, display_order=3)
        s.add_all([combos, entrees, sides, drinks])
        await s.flush()

        items = {
            "Plate": MenuItem(name="Plate", category_id=combos.id, price=Decimal("9.80")),
            "Bowl": MenuItem(name="Bowl", category_id=combos.id, price=Decimal("8.30")),
            "Orange Chicken": MenuItem(name="Orange Chicken", category_id=entrees.id, price=Decimal("5.20")),
            "Honey Walnut Shrimp": MenuItem(
                name="Honey Walnut Shrimp",
                category_id=entrees.id,
                price=Decimal("6.70"),
                option_surcharge=Decimal("1.50"),
            ),
            "Fried Rice": MenuItem(name="Fried Rice", category_id=sides.id, price=Decimal("4.40")),
            "Super Greens": MenuItem(name="Super Greens", category_id=sides.id, price=Decimal("4.40")),
            "Chow Mein": MenuItem(name="Chow Mein", category_id=sides.id, price=Decimal("4.40")),
            "Fountain Drink": MenuItem(name="Fountain Drink", category_id=drinks.id, price=Decimal("2.10")),
        }
        s.add_all(items.values())

        inventory = {
            "rice": InventoryItem(name="Rice", unit="bag", current_quantity=Decimal("9"), servings_per_unit=Decimal("1")),
            "chicken": InventoryItem(name="Chicken", unit="case", current_quantity=Decimal("3"), servings_per_unit=Decimal("2")),
            "sauce": InventoryItem(name="Orange Sauce", unit="jug", current_quantity=Decimal("10"), servings_per_unit=Decimal("10")),
            "greens": InventoryItem(name="Greens", unit="case", current_quantity=Decimal("50"), servings_per_unit=Decimal("1")),
        }
        s.add_all(inventory.values())
        await s.flush()

        s.add_all([
            RecipeLine(menu_item_id=items["Fried Rice"].id, ingredient_id=inventory["rice"].id,
                       quantity_per_serving=Decimal("2"), unit="bag"),
            RecipeLine(menu_item_id=items["Orange Chicken"].id, ingredient_id=inventory["chicken"].id,
                       quantity_per_serving=Decimal("1"), unit="portion"),
            RecipeLine(menu_item_id=items["Orange Chicken"].id, ingredient_id=inventory["sauce"].id,
                       quantity_per_serving=Decimal("1"), unit="portion"),
            RecipeLine(menu_item_id=items["Super Greens"].id, ingredient_id=inventory["greens"].id,
                       quantity_per_serving=Decimal("1"), unit="portion"),
        ])
        await s.commit()

        return {
            "items": {name: mi.id for name, mi in items.items()},
            "inventory": {key: inv.id for key, inv in inventory.items()},
        }


@pytest_asyncio.fixture
async def make_order(session_maker):
    """Create an order from (base item id, qty, [(option item id, qty), ...]) tuples."""
    async def _make(*lines, status="queued"):
        async with session_maker() as s:
            order = Order(status=status, dine_option="takeout")
            for base_id, qty, options in lines:
                order.items.append(
                    OrderItem(
                        menu_item_id=base_id,
                        quantity=qty,
                        unit_price=Decimal("0"),
                        options=[OrderItemOption(menu_item_id=oid, quantity=oq) for (oid, oq) in options],
                    )
                )
            s.add(order)
            await s.commit()
            return order.id
    return _make


@pytest_asyncio.fixture
async def client(session_maker):
    async def _override_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = _override_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()

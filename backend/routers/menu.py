from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.database import get_async_session
from db.menu import Category as CategoryModel
from schemas.menu import MenuCategoryRead, MenuItemRead

router = APIRouter()


@router.get("/", response_model=List[MenuCategoryRead])
async def get_menu(db: AsyncSession = Depends(get_async_session)):
    """Kiosk menu: categories in display order, each with its active items."""
    res = await db.execute(
        select(CategoryModel)
        .options(selectinload(CategoryModel.menu_items))
        .order_by(CategoryModel.display_order.asc(), CategoryModel.name.asc())
    )
    out = []
    for c in res.scalars().all():
        items = sorted(
            (mi for mi in (c.menu_items or []) if mi.is_active),
            key=lambda mi: (mi.name or "").lower(),
        )
        out.append(
            MenuCategoryRead(
                id=c.id,
                name=c.name,
                kind=c.kind,
                items=[
                    MenuItemRead(
                        id=mi.id,
                        name=mi.name,
                        price=float(mi.price or 0),
                        option_surcharge=float(mi.option_surcharge or 0),
                    )
                    for mi in items
                ],
            )
        )
    return out

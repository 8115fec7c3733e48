import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    InsufficientInventory,
    InsufficientPreparedStock,
    InvalidInput,
    LedgerError,
    NoRecipeConfigured,
    NotFound,
    TransientStorageError,
)
from db.database import get_async_session
from db.menu import MenuItem as MenuItemModel
from db.transactions import run_in_transaction
from schemas.prepared_stock import (
    CookBatchRequest,
    CookBatchResponse,
    DiscardResponse,
    PreparedStockOut,
)
from services.ledger import PreparedStockLedger

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_ERROR = [
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (NoRecipeConfigured, status.HTTP_409_CONFLICT),
    (InsufficientInventory, status.HTTP_409_CONFLICT),
    (InsufficientPreparedStock, status.HTTP_409_CONFLICT),
    (TransientStorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def ledger_http_exception(e: LedgerError) -> HTTPException:
    """Map a ledger error to an HTTPException carrying its structured detail."""
    code = status.HTTP_409_CONFLICT
    for exc_type, exc_code in _STATUS_BY_ERROR:
        if isinstance(e, exc_type):
            code = exc_code
            break
    return HTTPException(status_code=code, detail=e.to_detail())


@router.get("/", response_model=List[PreparedStockOut])
async def get_prepared_stock(db: AsyncSession = Depends(get_async_session)):
    """Servings available per entree/side, with a display level (out/low/ok)."""
    levels = await PreparedStockLedger(db).snapshot()
    return [
        PreparedStockOut(
            menu_item_id=lv.menu_item_id,
            name=lv.name,
            category_kind=lv.category_kind,
            servings_available=float(lv.servings_available),
            level=lv.level,
        )
        for lv in levels
    ]


@router.post("/batches", response_model=CookBatchResponse, status_code=status.HTTP_201_CREATED)
async def cook_batch(
    payload: CookBatchRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """
    Cook a batch: deduct the recipe's raw inventory and add prepared servings.

    All-or-nothing. A 409 lists every short ingredient with have/need amounts.
    """
    ledger = PreparedStockLedger(db)
    try:
        available = await run_in_transaction(
            db, lambda: ledger.cook_batch(payload.menu_item_id, payload.servings)
        )
    except LedgerError as e:
        raise ledger_http_exception(e)
    except Exception as e:
        logger.exception("cook_batch failed for menu item %s", payload.menu_item_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to cook batch: {e}",
        )

    name = (await db.execute(
        select(MenuItemModel.name).where(MenuItemModel.id == payload.menu_item_id)
    )).scalar_one_or_none()
    return CookBatchResponse(
        menu_item_id=payload.menu_item_id,
        menu_item_name=name,
        servings_cooked=payload.servings,
        servings_available=float(available),
    )


@router.post("/discard", response_model=DiscardResponse)
async def discard_prepared_stock(db: AsyncSession = Depends(get_async_session)):
    """End-of-day waste clearing. Irreversible."""
    ledger = PreparedStockLedger(db)
    try:
        cleared = await run_in_transaction(db, ledger.discard_all)
    except LedgerError as e:
        raise ledger_http_exception(e)
    except Exception as e:
        logger.exception("discard_prepared_stock failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to discard prepared stock: {e}",
        )
    return DiscardResponse(cleared=cleared)

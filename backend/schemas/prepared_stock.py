from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator


StockLevelName = Literal["out", "low", "ok"]


class CookBatchRequest(BaseModel):
    menu_item_id: int
    servings: int

    @field_validator("servings")
    @classmethod
    def _servings_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("servings must be > 0")
        return v


class CookBatchResponse(BaseModel):
    menu_item_id: int
    menu_item_name: Optional[str] = None
    servings_cooked: int
    servings_available: float


class PreparedStockOut(BaseModel):
    menu_item_id: int
    name: str
    category_kind: Optional[str] = None
    servings_available: float
    level: StockLevelName


class DiscardResponse(BaseModel):
    cleared: int


class ShortageOut(BaseModel):
    id: int
    name: Optional[str] = None
    have: float
    need: float


class LedgerErrorOut(BaseModel):
    message: str
    shortages: List[ShortageOut] = []

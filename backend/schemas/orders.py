from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator


DineOption = Literal["takeout", "dine_in"]


class KioskOrderOption(BaseModel):
    menu_item_id: int
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def _qty_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        return v


class KioskOrderLine(BaseModel):
    menu_item_id: int
    quantity: int = 1
    options: List[KioskOrderOption] = []

    @field_validator("quantity")
    @classmethod
    def _qty_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quantity must be > 0")
        return v


class KioskOrderCreate(BaseModel):
    dine_option: DineOption = "takeout"
    items: List[KioskOrderLine]
    notes: Optional[str] = None
    pay_amount: Optional[float] = None

    @field_validator("items")
    @classmethod
    def _items_required(cls, v: List[KioskOrderLine]) -> List[KioskOrderLine]:
        if not v:
            raise ValueError("No items.")
        return v

    @field_validator("notes")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class KioskOrderCreated(BaseModel):
    order_id: int
    subtotal: float
    tax_amount: float
    total: float


class OrderOptionRead(BaseModel):
    menu_item_id: int
    name: Optional[str] = None
    quantity: int


class OrderItemRead(BaseModel):
    id: int
    menu_item_id: int
    name: Optional[str] = None
    quantity: int
    unit_price: float
    options: List[OrderOptionRead] = []


class OrderRead(BaseModel):
    id: int
    status: str
    dine_option: str
    notes: Optional[str] = None
    subtotal: float
    tax_amount: float
    total: float
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_consumed: bool = False
    items: List[OrderItemRead]

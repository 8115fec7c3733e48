from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class KitchenStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def _normalize(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not v:
            raise ValueError("status required")
        return v


class KitchenStatusOut(BaseModel):
    order_id: int
    status: str
    completed_at: Optional[datetime] = None
    consumed: bool = False


class KitchenQueueItem(BaseModel):
    order_item_id: int
    menu_item_id: int
    name: Optional[str] = None
    quantity: int
    options: List[str] = []


class KitchenQueueOrder(BaseModel):
    order_id: int
    placed_at: Optional[datetime] = None
    status: str
    dine_option: str
    notes: Optional[str] = None
    items: List[KitchenQueueItem]


class ClearDoneResponse(BaseModel):
    cleared: int

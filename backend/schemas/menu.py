from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MenuItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    option_surcharge: float = 0.0


class MenuCategoryRead(BaseModel):
    id: int
    name: str
    kind: Optional[str] = None
    items: List[MenuItemRead]

from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    unit = Column(Text, nullable=False)  # 'case', 'bag', 'lb', ...
    is_active = Column(Boolean, nullable=False, default=True)

    current_quantity = Column(Numeric(12, 3), nullable=False, default=0)
    # Recipe units contained in one inventory unit (e.g. 1 bag = 20 lb)
    servings_per_unit = Column(Numeric(10, 3), nullable=False, default=1)

    par_level = Column(Numeric, nullable=True)

    movements = relationship("InventoryMovement", back_populates="inventory_item", cascade="all, delete-orphan")

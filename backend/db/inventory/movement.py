from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)

    inventory_item_id = Column(
        Integer,
        ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    change = Column(Numeric(12, 3), nullable=False)
    reason = Column(Text, nullable=True)
    source_type = Column(Text, nullable=True, index=True)  # 'batch_cook'
    source_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    inventory_item = relationship("InventoryItem", back_populates="movements")

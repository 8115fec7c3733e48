from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class PreparedStock(Base):
    """Cooked, ready-to-serve servings of one entree or side."""
    __tablename__ = "prepared_stock"
    __table_args__ = (
        CheckConstraint("servings_available >= 0", name="ck_prepared_stock_non_negative"),
    )

    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), primary_key=True)
    servings_available = Column(Numeric(10, 2), nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    menu_item = relationship("MenuItem")


class ConsumptionRecord(Base):
    """Marks an order whose prepared stock has already been deducted."""
    __tablename__ = "consumption_records"

    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), primary_key=True)
    consumed_at = Column(DateTime, nullable=False, server_default=func.now())

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

QUEUED = "queued"
PREPPING = "prepping"
DONE = "done"
KITCHEN_STATUSES = (QUEUED, PREPPING, DONE)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    status = Column(Text, nullable=False, default=QUEUED, index=True)  # queued|prepping|done
    dine_option = Column(Text, nullable=False, default="takeout")  # takeout|dine_in
    notes = Column(Text, nullable=True)

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    completed_at = Column(DateTime, nullable=True)
    # Set when a done order is cleared off the kitchen display
    cleared_at = Column(DateTime, nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)

    order = relationship("Order", back_populates="items")
    menu_item = relationship("MenuItem")
    options = relationship(
        "OrderItemOption", back_populates="order_item", cascade="all, delete-orphan", order_by="OrderItemOption.id"
    )


class OrderItemOption(Base):
    """A menu item picked as an option on an order line (e.g. a side on a plate)."""
    __tablename__ = "order_item_options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=1)

    order_item = relationship("OrderItem", back_populates="options")
    menu_item = relationship("MenuItem")

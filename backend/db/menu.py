from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .database import Base

ENTREE = "ENTREE"
SIDE = "SIDE"
PREPARED_KINDS = (ENTREE, SIDE)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    # 'ENTREE' | 'SIDE' | NULL (drinks, appetizers, combo containers...)
    kind = Column(Text, nullable=True, index=True)
    display_order = Column(Integer, nullable=False, default=0)

    menu_items = relationship("MenuItem", back_populates="category")


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    # Extra charged when this item is picked as an option on another item
    option_surcharge = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    category = relationship("Category", back_populates="menu_items")
    recipe_lines = relationship("RecipeLine", back_populates="menu_item", cascade="all, delete-orphan")

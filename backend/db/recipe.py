from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .database import Base


class RecipeLine(Base):
    """How many raw inventory units one prepared serving of a menu item uses."""
    __tablename__ = "recipe_lines"
    __table_args__ = (
        UniqueConstraint("menu_item_id", "ingredient_id", name="ux_recipe_lines_item_ingredient"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False, index=True)

    quantity_per_serving = Column(Numeric(10, 3), nullable=False)
    unit = Column(String, nullable=False)  # 'lb', 'oz', 'each', ...

    menu_item = relationship("MenuItem", back_populates="recipe_lines")
    ingredient = relationship("InventoryItem")

"""
Raw ingredient inventory.

Models:
- InventoryItem (one per ingredient, current quantity on hand)
- InventoryMovement (append-only deltas, written alongside every deduction)
"""

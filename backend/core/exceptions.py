"""Errors raised by the prepared-stock ledger.

Every error here is recoverable: routers turn them into an operator-facing
message and leave order/kitchen state untouched.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class Shortage:
    id: int
    name: Optional[str]
    have: Decimal
    need: Decimal

    def describe(self) -> str:
        label = self.name or f"#{self.id}"
        return f"{label} (have {_fmt(self.have)}, need {_fmt(self.need)})"

    def to_dict(self) -> dict:
        out = asdict(self)
        out["have"] = float(self.have)
        out["need"] = float(self.need)
        return out


def _fmt(x: Decimal) -> str:
    # 4.00 -> "4", 0.50 -> "0.5"
    x = Decimal(x)
    if x == x.to_integral_value():
        return str(x.quantize(Decimal(1)))
    return format(x.normalize(), "f")


class LedgerError(Exception):
    """Base class for all prepared-stock ledger errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"message": self.message}


class InvalidInput(LedgerError):
    pass


class NotFound(LedgerError):
    pass


class NoRecipeConfigured(LedgerError):
    def __init__(self, menu_item_id: int, name: Optional[str] = None):
        label = name or f"menu item {menu_item_id}"
        super().__init__(f"No recipe configured for {label}. Add recipe lines before cooking a batch.")
        self.menu_item_id = menu_item_id


class _ShortageError(LedgerError):
    prefix = "Not enough stock"

    def __init__(self, shortages: List[Shortage], prefix: Optional[str] = None):
        self.shortages = list(shortages)
        head = prefix or self.prefix
        super().__init__(f"{head}: " + ", ".join(s.describe() for s in self.shortages))

    def to_detail(self) -> dict:
        return {
            "message": self.message,
            "shortages": [s.to_dict() for s in self.shortages],
        }


class InsufficientInventory(_ShortageError):
    prefix = "Not enough inventory"


class InsufficientPreparedStock(_ShortageError):
    prefix = "Not enough prepared stock"


class TransientStorageError(LedgerError):
    """A storage conflict (serialization failure, lock timeout, duplicate key race).

    The caller may retry the whole transaction.
    """

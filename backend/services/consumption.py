"""
Order lines -> prepared servings consumed.

Pure: no storage access, so the serving rules can be tested on plain data.

Rules:
- A line whose base item is itself an entree or side consumes `quantity` servings of it.
- Entree options count whole servings, never halved.
- Side options on one line share a half-pan: when the line carries 2 or more side
  units, every side unit counts 0.5 servings; a single side unit counts 1.
- Option servings are multiplied by the line quantity (a line can be 3 plates).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from db.menu import ENTREE, PREPARED_KINDS, SIDE

HALF = Decimal("0.5")
ONE = Decimal("1")


@dataclass(frozen=True)
class OrderLineOption:
    menu_item_id: int
    category_id: int
    category_kind: Optional[str]
    quantity: int = 1
    name: Optional[str] = None


@dataclass(frozen=True)
class OrderLine:
    menu_item_id: int
    category_id: int
    category_kind: Optional[str]
    quantity: int = 1
    options: List[OrderLineOption] = field(default_factory=list)
    name: Optional[str] = None


def side_unit_servings(total_side_units: int) -> Decimal:
    return HALF if total_side_units >= 2 else ONE


def compute_consumption(lines: Iterable[OrderLine]) -> Dict[int, Decimal]:
    needs: Dict[int, Decimal] = {}

    def _add(menu_item_id: int, servings: Decimal) -> None:
        if servings:
            needs[menu_item_id] = needs.get(menu_item_id, Decimal("0")) + servings

    for line in lines:
        line_qty = Decimal(int(line.quantity or 0))
        if line_qty <= 0:
            continue

        if line.category_kind in PREPARED_KINDS:
            _add(line.menu_item_id, line_qty)

        sides = [o for o in line.options if o.category_kind == SIDE]
        entrees = [o for o in line.options if o.category_kind == ENTREE]

        per_side = side_unit_servings(sum(int(o.quantity or 0) for o in sides))
        for opt in sides:
            _add(opt.menu_item_id, Decimal(int(opt.quantity or 0)) * per_side * line_qty)
        for opt in entrees:
            _add(opt.menu_item_id, Decimal(int(opt.quantity or 0)) * line_qty)

    return needs

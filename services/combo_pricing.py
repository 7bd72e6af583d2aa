"""
Combo pricing calculator.

original  = Σ item price × quantity (unknown items price at 0)
discounted = max(0, original × (1 − discount / 100))
effective = explicit price when manually overridden, else discounted

The discount percentage is deliberately not clamped here.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional
import structlog

from models.menu import ComboItem, EntityKind
from services.menu_repository import MenuRepository, get_menu_repository

logger = structlog.get_logger(__name__)


@dataclass
class ComboPrice:
    """Computed combo pricing."""
    original_price: float
    discounted_price: float
    effective_price: float
    unresolved_ids: list[str] = field(default_factory=list)

    @property
    def fully_resolved(self) -> bool:
        """True if every referenced item was found."""
        return not self.unresolved_ids


def price_combo(
    items: Iterable[ComboItem],
    discount_percent: float,
    price_lookup: Mapping[str, float],
    manual_price_override: bool = False,
    explicit_price: Optional[float] = None
) -> ComboPrice:
    """
    Price a combo from known item prices.

    Args:
        items: Food item references with quantities
        discount_percent: Discount applied to the original price
        price_lookup: food_item_id → current price
        manual_price_override: Use explicit_price as the effective price
        explicit_price: Caller-supplied price (only used with the override)

    Returns:
        ComboPrice; missing references are listed in unresolved_ids
    """
    original = 0.0
    unresolved = []
    for item in items:
        unit_price = price_lookup.get(item.food_item_id)
        if unit_price is None:
            unresolved.append(item.food_item_id)
            unit_price = 0.0
        original += float(unit_price) * item.quantity

    discounted = max(0.0, original * (1 - (discount_percent or 0) / 100))

    if manual_price_override and explicit_price is not None:
        effective = float(explicit_price)
    else:
        effective = discounted

    return ComboPrice(
        original_price=round(original, 2),
        discounted_price=round(discounted, 2),
        effective_price=round(effective, 2),
        unresolved_ids=unresolved
    )


class ComboPricingCalculator:
    """Prices combos against an outlet's current food item prices."""

    def __init__(self, repository: Optional[MenuRepository] = None):
        self.repository = repository or get_menu_repository()

    def price(
        self,
        outlet_id: str,
        items: list[ComboItem],
        discount_percent: float = 0,
        manual_price_override: bool = False,
        explicit_price: Optional[float] = None
    ) -> ComboPrice:
        """Price a combo, looking up referenced items in the outlet."""
        ids = [item.food_item_id for item in items]
        rows = self.repository.find(outlet_id, EntityKind.FOOD_ITEM, {"id": ids}) if ids else []
        lookup = {row["id"]: row.get("price") or 0 for row in rows}

        result = price_combo(items, discount_percent, lookup, manual_price_override, explicit_price)

        if result.unresolved_ids:
            logger.warning(
                "combo_items_unresolved",
                outlet_id=outlet_id,
                unresolved=result.unresolved_ids
            )
        return result

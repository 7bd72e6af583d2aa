"""
Menu entity schemas.

Mirrors the documents stored per outlet: categories, food items,
add-ons and combos. Combos are a tagged union on ``combo_type``.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, TypeAdapter, model_validator

from models.base import BaseSchema, OutletEntity, TimestampMixin


class EntityKind(str, Enum):
    """Menu entity kinds. Values are the backing table names."""
    CATEGORY = "categories"
    FOOD_ITEM = "food_items"
    ADDON = "addons"
    COMBO = "combos"


class ItemType(str, Enum):
    """Item classification."""
    FOOD = "food"
    BEVERAGE = "beverage"


class FoodType(str, Enum):
    """Dietary classification."""
    VEG = "veg"
    NON_VEG = "non-veg"


class PriceDisplayType(str, Enum):
    """Whether the price is a fixed amount or informational only."""
    FIXED = "fixed"
    VARIABLE = "variable"


class ComboType(str, Enum):
    """Combo discriminator."""
    OFFER = "offer"
    REGULAR = "regular"


class DuplicateStrategy(str, Enum):
    """What to do when an incoming record collides with an existing entity."""
    SKIP = "skip"
    UPDATE = "update"
    CREATE = "create"


def effective_availability(is_active: bool, is_available: Optional[bool]) -> bool:
    """
    Resolve the stock flag against the publishing flag.

    An unpublished item is never available; an unset stock flag follows
    the publishing flag.
    """
    if not is_active:
        return False
    return is_active if is_available is None else is_available


# ===================
# OUTLET
# ===================

class Outlet(BaseSchema, TimestampMixin):
    """Outlet reference. Only the fields the menu engine reads."""

    id: str
    name: str
    brand_id: Optional[str] = None


# ===================
# CATEGORY
# ===================

class Category(OutletEntity):
    """Menu category, unique by slug within an outlet."""

    id: str
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


# ===================
# FOOD ITEM
# ===================

class Variant(BaseSchema):
    """Size/price variant of a food item."""

    size: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)


class FoodItem(OutletEntity):
    """
    Food item scoped to an outlet.

    ``price`` must be non-negative under fixed pricing; with variable
    pricing it is informational only.
    """

    id: str
    category_id: Optional[str] = None
    addon_ids: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    item_type: ItemType = ItemType.FOOD
    food_type: FoodType = FoodType.VEG
    is_veg: bool = True
    price: float = 0
    price_display_type: PriceDisplayType = PriceDisplayType.FIXED
    tax_percentage: float = 5
    is_available: bool = True
    variants: list[Variant] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def fixed_price_non_negative(cls, data: Any) -> Any:
        if isinstance(data, dict):
            display_type = data.get("price_display_type") or PriceDisplayType.FIXED.value
            price = data.get("price")
            if (
                display_type == PriceDisplayType.FIXED.value
                and isinstance(price, (int, float))
                and price < 0
            ):
                raise ValueError("price must be non-negative for fixed pricing")
            if data.get("addon_ids") is None:
                data = {**data, "addon_ids": []}
        return data


# ===================
# ADD-ON
# ===================

class AddOn(OutletEntity):
    """Add-on attachable to food items of the same outlet."""

    id: str
    price: float = Field(..., ge=0)
    category: Optional[str] = None


# ===================
# COMBO
# ===================

OFFER_FIELDS = frozenset({"items", "discount_percentage", "original_price", "manual_price_override"})
REGULAR_FIELDS = frozenset({"custom_items"})


class ComboItem(BaseSchema):
    """Reference to a food item inside an offer combo."""

    food_item_id: str
    quantity: int = Field(1, ge=1)


class ComboLineItem(BaseSchema):
    """Free-text line of a regular combo."""

    name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class ComboBase(OutletEntity):
    """Fields shared by both combo types."""

    id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


def _reject_fields(data: Any, forbidden: frozenset, combo_type: str) -> Any:
    if isinstance(data, dict):
        populated = sorted(
            key for key in forbidden
            if data.get(key) not in (None, [], False, 0)
        )
        if populated:
            raise ValueError(f"{combo_type} combo cannot carry {', '.join(populated)}")
        data = {k: v for k, v in data.items() if k not in forbidden}
    return data


class OfferCombo(ComboBase):
    """Combo built from existing food items with derived pricing."""

    combo_type: Literal["offer"] = "offer"
    items: list[ComboItem] = Field(..., min_length=1)
    discount_percentage: float = 0
    original_price: float = 0
    price: float = 0
    manual_price_override: bool = False

    @model_validator(mode="before")
    @classmethod
    def no_regular_fields(cls, data: Any) -> Any:
        return _reject_fields(data, REGULAR_FIELDS, "offer")


class RegularCombo(ComboBase):
    """Combo of free-text lines with a directly-set price."""

    combo_type: Literal["regular"] = "regular"
    custom_items: list[ComboLineItem] = Field(..., min_length=1)
    price: float = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def no_offer_fields(cls, data: Any) -> Any:
        return _reject_fields(data, OFFER_FIELDS, "regular")


Combo = Annotated[Union[OfferCombo, RegularCombo], Field(discriminator="combo_type")]

_combo_adapter = TypeAdapter(Combo)


def combo_from_row(row: dict) -> Union[OfferCombo, RegularCombo]:
    """
    Build a typed combo from a stored row.

    Rows written before the discriminator existed have no ``combo_type``;
    they are offers when they reference food items.
    """
    data = dict(row)
    if not data.get("combo_type"):
        data["combo_type"] = ComboType.OFFER.value if data.get("items") else ComboType.REGULAR.value
    return _combo_adapter.validate_python(data)


def combo_to_document(combo: Union[OfferCombo, RegularCombo]) -> dict:
    """Fields to persist for a combo (identifiers and timestamps excluded)."""
    return combo.model_dump(mode="json", exclude={"id", "created_at", "updated_at"})

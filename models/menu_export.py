"""
Portable menu snapshot schemas.

A snapshot carries names instead of foreign keys so it can be read
without access to the outlet it came from.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from models.base import BaseSchema
from models.menu import FoodType, ItemType, PriceDisplayType, Variant


class ExportOutlet(BaseSchema):
    id: str
    name: str


class ExportCategory(BaseSchema):
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class ExportItem(BaseSchema):
    """Food item with category and add-ons denormalized to names."""

    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    item_type: ItemType = ItemType.FOOD
    food_type: FoodType = FoodType.VEG
    is_veg: bool = True
    price: float = 0
    price_display_type: PriceDisplayType = PriceDisplayType.FIXED
    tax_percentage: float = 5
    is_active: bool = True
    is_available: bool = True
    variants: list[Variant] = Field(default_factory=list)
    addons: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    display_order: int = 0


class ExportAddOn(BaseSchema):
    name: str
    price: float
    category: Optional[str] = None
    is_active: bool = True
    display_order: int = 0


class ExportComboItem(BaseSchema):
    name: str
    quantity: int = 1


class ExportComboBase(BaseSchema):
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: float = 0
    is_active: bool = True
    display_order: int = 0


class ExportOfferCombo(ExportComboBase):
    combo_type: Literal["offer"] = "offer"
    items: list[ExportComboItem] = Field(default_factory=list)
    original_price: float = 0
    discount_percentage: float = 0
    manual_price_override: bool = False


class ExportRegularCombo(ExportComboBase):
    combo_type: Literal["regular"] = "regular"
    custom_items: list[ExportComboItem] = Field(default_factory=list)


ExportCombo = Annotated[
    Union[ExportOfferCombo, ExportRegularCombo],
    Field(discriminator="combo_type")
]


class MenuSnapshot(BaseSchema):
    """Full menu graph of one outlet."""

    outlet: ExportOutlet
    exported_at: datetime
    categories: list[ExportCategory] = Field(default_factory=list)
    items: list[ExportItem] = Field(default_factory=list)
    addons: list[ExportAddOn] = Field(default_factory=list)
    combos: list[ExportCombo] = Field(default_factory=list)

"""
Menu import schemas.

Import records arrive as loosely-typed JSON objects; each one is validated
individually so a malformed record fails only itself.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.base import BaseSchema
from models.menu import (
    ComboLineItem,
    ComboType,
    DuplicateStrategy,
    FoodType,
    ItemType,
    PriceDisplayType,
    Variant,
)


class RecordSchema(BaseSchema):
    """Accepts both snake_case and camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def is_combo_record(raw: dict) -> bool:
    """True when a raw import record describes a combo."""
    if not isinstance(raw, dict):
        return False
    if raw.get("is_combo") or raw.get("isCombo"):
        return True
    return str(raw.get("type") or raw.get("record_type") or "").lower() == "combo"


# ===================
# RECORDS
# ===================

class ImportItemRecord(RecordSchema):
    """A plain food item to import."""

    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    category: Optional[str] = Field(None, description="Category name")
    category_id: Optional[str] = Field(None, description="Existing category id in the outlet")
    item_type: ItemType = ItemType.FOOD
    is_veg: Optional[bool] = None
    food_type: Optional[FoodType] = None
    price_display_type: PriceDisplayType = PriceDisplayType.FIXED
    tax_percentage: Optional[float] = Field(None, ge=0, le=100)
    is_active: bool = True
    is_available: Optional[bool] = None
    variants: list[Variant] = Field(default_factory=list)
    addon_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    display_order: Optional[int] = None

    def resolved_food_type(self) -> FoodType:
        """Dietary class from food_type, else is_veg, else veg."""
        if self.food_type is not None:
            return self.food_type
        if self.is_veg is False:
            return FoodType.NON_VEG
        return FoodType.VEG


class ImportComboItemRef(RecordSchema):
    """Food item reference inside an imported combo."""

    food_item_id: Optional[str] = None
    name: Optional[str] = None
    quantity: int = Field(1, ge=1)


class ImportComboRecord(RecordSchema):
    """A combo to import."""

    name: str = Field(..., min_length=1)
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    combo_type: Optional[ComboType] = None
    items: list[ImportComboItemRef] = Field(default_factory=list)
    custom_items: list[ComboLineItem] = Field(default_factory=list)
    discount_percentage: float = 0
    manual_price_override: bool = False
    is_active: bool = True
    image_url: Optional[str] = None
    display_order: Optional[int] = None


# ===================
# OPTIONS / REQUEST
# ===================

class ImportOptions(BaseSchema):
    """Options controlling a menu import."""

    dry_run: bool = Field(False, description="Compute decisions without writing")
    create_missing_categories: bool = Field(
        True,
        description="Create categories referenced by name that do not exist yet"
    )
    on_duplicate: DuplicateStrategy = Field(
        DuplicateStrategy.SKIP,
        description="Policy when a record matches an existing entity"
    )


class ImportRequest(BaseModel):
    """Import request body."""

    # Entries are validated one by one so a malformed record fails only itself
    records: list[Any] = Field(..., description="Heterogeneous item/combo records")
    options: ImportOptions = Field(default_factory=ImportOptions)


# ===================
# OUTCOME
# ===================

class ImportStatus(str, Enum):
    """Per-record outcome."""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class ImportRowResult(BaseSchema):
    """Outcome of one import record."""

    index: int
    name: Optional[str] = None
    record_type: Literal["item", "combo"] = "item"
    status: ImportStatus
    entity_id: Optional[str] = None
    category_id: Optional[str] = None
    combo_type: Optional[ComboType] = None
    error: Optional[str] = None


class ImportRowError(BaseSchema):
    """Failure entry of an import record."""

    index: int
    name: Optional[str] = None
    message: str


class ImportResult(BaseSchema):
    """Aggregate outcome of an import batch."""

    outlet_id: str
    dry_run: bool = False
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[ImportRowError] = Field(default_factory=list)
    results: list[ImportRowResult] = Field(default_factory=list)
    categories_created: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.created + self.updated + self.skipped + self.failed

    def record(self, row: ImportRowResult) -> None:
        """Append a row outcome and bump its counter."""
        self.results.append(row)
        if row.status == ImportStatus.CREATED:
            self.created += 1
        elif row.status == ImportStatus.UPDATED:
            self.updated += 1
        elif row.status == ImportStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.errors.append(ImportRowError(
                index=row.index,
                name=row.name,
                message=row.error or "Unknown error"
            ))


class SheetRowError(BaseSchema):
    """Spreadsheet row that could not be turned into a record."""

    row: int
    field: str
    error: str


class ImportUploadResult(ImportResult):
    """Import outcome of an uploaded spreadsheet, with rows rejected while parsing."""

    parse_errors: list[SheetRowError] = Field(default_factory=list)

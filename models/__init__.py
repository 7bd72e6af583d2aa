"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, OutletEntity, TimestampMixin
from models.menu import (
    EntityKind,
    ItemType,
    FoodType,
    PriceDisplayType,
    ComboType,
    DuplicateStrategy,
    Outlet,
    Category,
    Variant,
    FoodItem,
    AddOn,
    ComboItem,
    ComboLineItem,
    OfferCombo,
    RegularCombo,
    Combo,
    combo_from_row,
    combo_to_document,
    effective_availability,
)
from models.menu_import import (
    ImportItemRecord,
    ImportComboRecord,
    ImportOptions,
    ImportRequest,
    ImportStatus,
    ImportRowResult,
    ImportRowError,
    ImportResult,
    ImportUploadResult,
    SheetRowError,
)
from models.menu_export import MenuSnapshot
from models.menu_sync import (
    CategoryHandling,
    AvailabilityMode,
    SyncTargetStatus,
    SyncPreviewOptions,
    SyncOptions,
    SyncPreviewRequest,
    SyncRequest,
    SyncPreviewResult,
    SyncTargetResult,
    SyncResult,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "OutletEntity",

    # Menu entities
    "EntityKind",
    "ItemType",
    "FoodType",
    "PriceDisplayType",
    "ComboType",
    "DuplicateStrategy",
    "Outlet",
    "Category",
    "Variant",
    "FoodItem",
    "AddOn",
    "ComboItem",
    "ComboLineItem",
    "OfferCombo",
    "RegularCombo",
    "Combo",
    "combo_from_row",
    "combo_to_document",
    "effective_availability",

    # Import
    "ImportItemRecord",
    "ImportComboRecord",
    "ImportOptions",
    "ImportRequest",
    "ImportStatus",
    "ImportRowResult",
    "ImportRowError",
    "ImportResult",
    "ImportUploadResult",
    "SheetRowError",

    # Export
    "MenuSnapshot",

    # Sync
    "CategoryHandling",
    "AvailabilityMode",
    "SyncTargetStatus",
    "SyncPreviewOptions",
    "SyncOptions",
    "SyncPreviewRequest",
    "SyncRequest",
    "SyncPreviewResult",
    "SyncTargetResult",
    "SyncResult",
]

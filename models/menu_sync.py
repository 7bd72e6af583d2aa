"""
Cross-outlet menu sync schemas (preview and execution).
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from models.base import BaseSchema
from models.menu import DuplicateStrategy


class CategoryHandling(str, Enum):
    """Whether a same-named target category is reused or a new one created."""
    MAP_BY_NAME = "map_by_name"
    CREATE_NEW = "create_new"


class AvailabilityMode(str, Enum):
    """How the stock flag of synced items is set."""
    PRESERVE = "preserve"
    ALL_AVAILABLE = "all_available"
    ALL_UNAVAILABLE = "all_unavailable"


class SyncTargetStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


# ===================
# OPTIONS / REQUESTS
# ===================

class SyncPreviewOptions(BaseSchema):
    duplicate_strategy: DuplicateStrategy = DuplicateStrategy.SKIP
    category_handling: CategoryHandling = CategoryHandling.MAP_BY_NAME


class SyncOptions(SyncPreviewOptions):
    """Options for a live sync."""

    sync_categories: bool = True
    sync_addons: bool = True
    sync_items: bool = True
    sync_combos: bool = Field(
        False,
        description="Accepted for compatibility; combos are not propagated"
    )
    price_adjustment_percent: Optional[float] = Field(
        None,
        ge=-100,
        description="Multiplicative price adjustment, e.g. 10 for +10%"
    )
    availability_mode: AvailabilityMode = AvailabilityMode.PRESERVE


class SyncPreviewRequest(BaseModel):
    target_outlet_ids: list[str] = Field(..., min_length=1)
    options: SyncPreviewOptions = Field(default_factory=SyncPreviewOptions)


class SyncRequest(BaseModel):
    target_outlet_ids: list[str] = Field(..., min_length=1)
    options: SyncOptions = Field(default_factory=SyncOptions)


# ===================
# PREVIEW
# ===================

class SourceSummary(BaseSchema):
    outlet_id: str
    outlet_name: str
    categories: int = 0
    items: int = 0
    addons: int = 0
    combos: int = 0


class EntityForecast(BaseSchema):
    """Estimated writes for one entity kind in one target."""

    create: int = 0
    update: int = 0
    skip: int = 0
    map: int = 0


class TargetPreview(BaseSchema):
    outlet_id: str
    outlet_name: Optional[str] = None
    category_conflicts: list[str] = Field(default_factory=list)
    item_conflicts: list[str] = Field(default_factory=list)
    addon_conflicts: list[str] = Field(default_factory=list)
    categories: EntityForecast = Field(default_factory=EntityForecast)
    items: EntityForecast = Field(default_factory=EntityForecast)
    addons: EntityForecast = Field(default_factory=EntityForecast)
    error: Optional[str] = None


class SyncPreviewResult(BaseSchema):
    source_summary: SourceSummary
    per_target: list[TargetPreview] = Field(default_factory=list)


# ===================
# EXECUTION
# ===================

class SyncTargetResult(BaseSchema):
    """Outcome of syncing one target outlet."""

    outlet_id: str
    outlet_name: Optional[str] = None
    status: SyncTargetStatus = SyncTargetStatus.SUCCESS
    categories_synced: int = 0
    addons_synced: int = 0
    items_synced: int = 0
    combos_synced: int = 0
    items_skipped: int = 0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def total_synced(self) -> int:
        return self.categories_synced + self.addons_synced + self.items_synced + self.combos_synced

    def finalize(self) -> "SyncTargetResult":
        """Derive status from errors and counters."""
        if not self.errors:
            self.status = SyncTargetStatus.SUCCESS
        elif self.total_synced > 0:
            self.status = SyncTargetStatus.PARTIAL
        else:
            self.status = SyncTargetStatus.FAILED
        return self


class SyncResult(BaseSchema):
    success: bool
    results: list[SyncTargetResult] = Field(default_factory=list)
    total_time_ms: int = 0

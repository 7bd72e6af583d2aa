"""
Cross-outlet menu sync.

Copies the menu of a source outlet into one or more target outlets, in
dependency order: categories, then add-ons, then items. Each target gets
its own remapping table (source id → target id) and its own outcome
record; one failing target never affects the others.

Combos are not propagated: rebuilding an offer combo in a target would
need a food item remapping table, which the sync does not build.
"""

from dataclasses import dataclass, field
from typing import Optional
import time
import structlog

from models.menu import (
    AddOn,
    Category,
    DuplicateStrategy,
    EntityKind,
    FoodItem,
    Outlet,
    effective_availability,
)
from models.menu_sync import (
    AvailabilityMode,
    CategoryHandling,
    EntityForecast,
    SourceSummary,
    SyncOptions,
    SyncPreviewOptions,
    SyncPreviewResult,
    SyncResult,
    SyncTargetResult,
    SyncTargetStatus,
    TargetPreview,
)
from services.menu_identity import MenuIndex
from services.menu_repository import MenuRepository, get_menu_repository
from services.slug_service import unique_slug
from utils.text_utils import normalize_name
from exceptions import AppError, SyncTargetIsSourceError

logger = structlog.get_logger(__name__)

SYNCED_KINDS = (EntityKind.CATEGORY, EntityKind.ADDON, EntityKind.FOOD_ITEM)


def adjust_price(price: float, percent: Optional[float]) -> float:
    """Apply a multiplicative percentage adjustment, rounded to 2 decimals."""
    if not percent:
        return round(float(price or 0), 2)
    return round(float(price or 0) * (1 + percent / 100), 2)


def resolve_availability(mode: AvailabilityMode, is_active: bool, is_available: bool) -> bool:
    """Stock flag of a synced item."""
    if mode == AvailabilityMode.ALL_AVAILABLE:
        is_available = True
    elif mode == AvailabilityMode.ALL_UNAVAILABLE:
        is_available = False
    return effective_availability(is_active, is_available)


def forecast(total: int, collisions: int, policy: DuplicateStrategy) -> EntityForecast:
    """Estimated writes for one entity kind given its collision count."""
    if policy == DuplicateStrategy.CREATE:
        return EntityForecast(create=total)
    if policy == DuplicateStrategy.UPDATE:
        return EntityForecast(create=total - collisions, update=collisions)
    return EntityForecast(create=total - collisions, skip=collisions)


def _error_message(error: Exception) -> str:
    if isinstance(error, AppError):
        return error.message
    return str(error) or type(error).__name__


@dataclass
class _SourceMenu:
    """Source outlet menu, read once per job."""
    outlet: Outlet
    categories: list[dict] = field(default_factory=list)
    addons: list[dict] = field(default_factory=list)
    items: list[dict] = field(default_factory=list)
    combos: int = 0

    def summary(self) -> SourceSummary:
        return SourceSummary(
            outlet_id=self.outlet.id,
            outlet_name=self.outlet.name,
            categories=len(self.categories),
            items=len(self.items),
            addons=len(self.addons),
            combos=self.combos
        )


@dataclass
class _Remapping:
    """Source id → target id, per entity kind. Lives for one target only."""
    categories: dict[str, str] = field(default_factory=dict)
    addons: dict[str, str] = field(default_factory=dict)


class MenuSyncService:
    """
    Propagates a source outlet's menu to target outlets.

    Handles:
    - Non-mutating previews of conflicts and write counts
    - Category mapping by name or creation with fresh slugs
    - Add-on and item duplicate policies (skip/update/create)
    - Price adjustment and availability overrides for items
    """

    def __init__(self, repository: Optional[MenuRepository] = None):
        self.repository = repository or get_menu_repository()

    def _load_source(self, source_outlet_id: str) -> _SourceMenu:
        outlet = self.repository.require_outlet(source_outlet_id)
        return _SourceMenu(
            outlet=outlet,
            categories=self.repository.find(
                source_outlet_id, EntityKind.CATEGORY, order_by=["display_order", "name"]
            ),
            addons=self.repository.find(
                source_outlet_id, EntityKind.ADDON, order_by=["display_order", "name"]
            ),
            items=self.repository.find(
                source_outlet_id, EntityKind.FOOD_ITEM, order_by=["display_order", "name"]
            ),
            combos=self.repository.count(source_outlet_id, EntityKind.COMBO)
        )

    @staticmethod
    def _check_target(source: _SourceMenu, target_outlet_id: str) -> None:
        if target_outlet_id == source.outlet.id:
            raise SyncTargetIsSourceError(target_outlet_id)

    # ===================
    # PREVIEW
    # ===================

    def preview(
        self,
        source_outlet_id: str,
        target_outlet_ids: list[str],
        options: Optional[SyncPreviewOptions] = None
    ) -> SyncPreviewResult:
        """
        Forecast a sync without writing anything.

        Collisions are detected by name only for every kind.

        Args:
            source_outlet_id: Outlet to copy from
            target_outlet_ids: Outlets to copy into
            options: duplicate_strategy, category_handling

        Returns:
            SyncPreviewResult with one entry per target

        Raises:
            OutletNotFoundError: If the source outlet doesn't exist
        """
        options = options or SyncPreviewOptions()
        source = self._load_source(source_outlet_id)

        logger.info(
            "sync_preview_started",
            source_outlet_id=source_outlet_id,
            targets=len(target_outlet_ids)
        )

        result = SyncPreviewResult(source_summary=source.summary())
        for target_outlet_id in target_outlet_ids:
            try:
                result.per_target.append(self._preview_target(source, target_outlet_id, options))
            except Exception as e:
                logger.warning(
                    "sync_preview_target_failed",
                    source_outlet_id=source_outlet_id,
                    target_outlet_id=target_outlet_id,
                    error=str(e)
                )
                result.per_target.append(
                    TargetPreview(outlet_id=target_outlet_id, error=_error_message(e))
                )
        return result

    def _preview_target(
        self,
        source: _SourceMenu,
        target_outlet_id: str,
        options: SyncPreviewOptions
    ) -> TargetPreview:
        self._check_target(source, target_outlet_id)
        target = self.repository.require_outlet(target_outlet_id)

        def names(kind: EntityKind) -> set[str]:
            return {
                normalize_name(row.get("name"))
                for row in self.repository.find(target_outlet_id, kind)
            }

        def conflicts(rows: list[dict], existing: set[str]) -> list[str]:
            return [row["name"] for row in rows if normalize_name(row.get("name")) in existing]

        category_conflicts = conflicts(source.categories, names(EntityKind.CATEGORY))
        item_conflicts = conflicts(source.items, names(EntityKind.FOOD_ITEM))
        addon_conflicts = conflicts(source.addons, names(EntityKind.ADDON))

        if options.category_handling == CategoryHandling.MAP_BY_NAME:
            categories = EntityForecast(
                create=len(source.categories) - len(category_conflicts),
                map=len(category_conflicts)
            )
        else:
            categories = EntityForecast(create=len(source.categories))

        return TargetPreview(
            outlet_id=target.id,
            outlet_name=target.name,
            category_conflicts=category_conflicts,
            item_conflicts=item_conflicts,
            addon_conflicts=addon_conflicts,
            categories=categories,
            items=forecast(len(source.items), len(item_conflicts), options.duplicate_strategy),
            addons=forecast(len(source.addons), len(addon_conflicts), options.duplicate_strategy)
        )

    # ===================
    # EXECUTION
    # ===================

    def sync(
        self,
        source_outlet_id: str,
        target_outlet_ids: list[str],
        options: Optional[SyncOptions] = None
    ) -> SyncResult:
        """
        Copy the source outlet's menu into each target outlet.

        Targets are processed one after another; each has its own failure
        boundary, remapping table and outcome record.

        Args:
            source_outlet_id: Outlet to copy from
            target_outlet_ids: Outlets to copy into
            options: Sync options

        Returns:
            SyncResult; success is True only if every target succeeded

        Raises:
            OutletNotFoundError: If the source outlet doesn't exist
        """
        options = options or SyncOptions()
        started = time.perf_counter()
        source = self._load_source(source_outlet_id)

        logger.info(
            "sync_started",
            source_outlet_id=source_outlet_id,
            targets=len(target_outlet_ids),
            categories=len(source.categories),
            addons=len(source.addons),
            items=len(source.items),
            duplicate_strategy=options.duplicate_strategy.value,
            category_handling=options.category_handling.value
        )

        results = [self._sync_target(source, target_id, options) for target_id in target_outlet_ids]

        result = SyncResult(
            success=all(r.status == SyncTargetStatus.SUCCESS for r in results),
            results=results,
            total_time_ms=int((time.perf_counter() - started) * 1000)
        )

        logger.info(
            "sync_complete",
            source_outlet_id=source_outlet_id,
            success=result.success,
            statuses={r.outlet_id: r.status.value for r in results},
            total_time_ms=result.total_time_ms
        )
        return result

    def _sync_target(
        self,
        source: _SourceMenu,
        target_outlet_id: str,
        options: SyncOptions
    ) -> SyncTargetResult:
        started = time.perf_counter()
        result = SyncTargetResult(outlet_id=target_outlet_id)

        try:
            self._check_target(source, target_outlet_id)
            target = self.repository.require_outlet(target_outlet_id)
            result.outlet_name = target.name

            index = MenuIndex.load(self.repository, target_outlet_id, SYNCED_KINDS)
            remap = _Remapping()

            self._sync_categories(source, index, remap, options, result)
            self._sync_addons(source, index, remap, options, result)
            if options.sync_items:
                self._sync_items(source, index, remap, options, result)
            if options.sync_combos:
                result.warnings.append("Combos are not synced across outlets")

            result.finalize()
        except Exception as e:
            logger.error(
                "sync_target_failed",
                source_outlet_id=source.outlet.id,
                target_outlet_id=target_outlet_id,
                error=str(e),
                error_type=type(e).__name__
            )
            result.errors.append(_error_message(e))
            result.status = SyncTargetStatus.FAILED

        result.duration_ms = int((time.perf_counter() - started) * 1000)

        logger.info(
            "sync_target_complete",
            target_outlet_id=target_outlet_id,
            status=result.status.value,
            categories_synced=result.categories_synced,
            addons_synced=result.addons_synced,
            items_synced=result.items_synced,
            items_skipped=result.items_skipped,
            errors=len(result.errors)
        )
        return result

    @staticmethod
    def _entity_failed(
        result: SyncTargetResult,
        label: str,
        name: Optional[str],
        error: Exception
    ) -> None:
        logger.warning(
            "sync_entity_failed",
            target_outlet_id=result.outlet_id,
            kind=label,
            name=name,
            error=str(error)
        )
        result.errors.append(f"{label} '{name}': {_error_message(error)}")

    def _sync_categories(
        self,
        source: _SourceMenu,
        index: MenuIndex,
        remap: _Remapping,
        options: SyncOptions,
        result: SyncTargetResult
    ) -> None:
        """
        Map or create every source category in the target.

        With category sync off, same-named target categories are still
        mapped so items keep their category.
        """
        map_by_name = (
            not options.sync_categories
            or options.category_handling == CategoryHandling.MAP_BY_NAME
        )

        for row in source.categories:
            existing = index.find_category(row.get("name", ""))
            if existing is not None and map_by_name:
                remap.categories[row["id"]] = existing["id"]
                if options.sync_categories:
                    result.categories_synced += 1
                continue

            if not options.sync_categories:
                continue

            try:
                category = Category(**row)
                created = self.repository.create(EntityKind.CATEGORY, {
                    "outlet_id": index.outlet_id,
                    "name": category.name,
                    "slug": unique_slug(category.name, index.taken_slugs),
                    "description": category.description,
                    "image_url": category.image_url,
                    "display_order": category.display_order,
                    "is_active": category.is_active,
                })
            except Exception as e:
                self._entity_failed(result, "Category", row.get("name"), e)
                continue

            index.add(EntityKind.CATEGORY, created)
            remap.categories[row["id"]] = created["id"]
            result.categories_synced += 1

    def _sync_addons(
        self,
        source: _SourceMenu,
        index: MenuIndex,
        remap: _Remapping,
        options: SyncOptions,
        result: SyncTargetResult
    ) -> None:
        """Apply the duplicate policy to every source add-on."""
        policy = options.duplicate_strategy

        for row in source.addons:
            existing_id = index.resolve(EntityKind.ADDON, row)

            if not options.sync_addons or (existing_id and policy == DuplicateStrategy.SKIP):
                if existing_id:
                    remap.addons[row["id"]] = existing_id
                continue

            try:
                addon = AddOn(**row)
                fields = {
                    "price": addon.price,
                    "category": addon.category,
                    "is_active": addon.is_active,
                }
                if existing_id and policy == DuplicateStrategy.UPDATE:
                    written = self.repository.update(EntityKind.ADDON, existing_id, fields)
                    index.replace(EntityKind.ADDON, written)
                else:
                    written = self.repository.create(EntityKind.ADDON, {
                        "outlet_id": index.outlet_id,
                        "name": addon.name,
                        "display_order": addon.display_order,
                        **fields,
                    })
                    index.add(EntityKind.ADDON, written)
            except Exception as e:
                self._entity_failed(result, "AddOn", row.get("name"), e)
                continue

            remap.addons[row["id"]] = written["id"]
            result.addons_synced += 1

    def _sync_items(
        self,
        source: _SourceMenu,
        index: MenuIndex,
        remap: _Remapping,
        options: SyncOptions,
        result: SyncTargetResult
    ) -> None:
        """Create or overwrite every source item, matching by name only."""
        # Price is not part of the key: price_adjustment_percent changes it on the way over
        policy = options.duplicate_strategy
        existing_by_name: dict[str, dict] = {}
        for row in index.rows(EntityKind.FOOD_ITEM):
            existing_by_name.setdefault(normalize_name(row.get("name")), row)

        for row in source.items:
            existing = existing_by_name.get(normalize_name(row.get("name")))

            if existing is not None and policy == DuplicateStrategy.SKIP:
                result.items_skipped += 1
                continue

            try:
                fields = self._item_fields(FoodItem(**row), index.outlet_id, remap, options)
                if existing is not None and policy == DuplicateStrategy.UPDATE:
                    fields.pop("outlet_id")
                    written = self.repository.update(EntityKind.FOOD_ITEM, existing["id"], fields)
                    index.replace(EntityKind.FOOD_ITEM, written)
                else:
                    written = self.repository.create(EntityKind.FOOD_ITEM, fields)
                    index.add(EntityKind.FOOD_ITEM, written)
                    existing_by_name.setdefault(normalize_name(written.get("name")), written)
            except Exception as e:
                self._entity_failed(result, "Item", row.get("name"), e)
                continue

            result.items_synced += 1

    @staticmethod
    def _item_fields(
        item: FoodItem,
        target_outlet_id: str,
        remap: _Remapping,
        options: SyncOptions
    ) -> dict:
        """Target-side fields of a source item."""
        percent = options.price_adjustment_percent
        fields = {
            "outlet_id": target_outlet_id,
            "name": item.name,
            "description": item.description,
            "item_type": item.item_type.value,
            "food_type": item.food_type.value,
            "is_veg": item.is_veg,
            "price": adjust_price(item.price, percent),
            "price_display_type": item.price_display_type.value,
            "tax_percentage": item.tax_percentage,
            "is_active": item.is_active,
            "is_available": resolve_availability(
                options.availability_mode, item.is_active, item.is_available
            ),
            "variants": [
                {"size": v.size, "price": adjust_price(v.price, percent)}
                for v in item.variants
            ],
            "addon_ids": [remap.addons[a] for a in item.addon_ids if a in remap.addons],
            "tags": list(item.tags),
            "image_url": item.image_url,
            "display_order": item.display_order,
        }

        category_id = remap.categories.get(item.category_id) if item.category_id else None
        if category_id:
            fields["category_id"] = category_id
        return fields


# Singleton instance for convenience
_menu_sync_service: Optional[MenuSyncService] = None

def get_menu_sync_service() -> MenuSyncService:
    """Get or create MenuSyncService instance."""
    global _menu_sync_service
    if _menu_sync_service is None:
        _menu_sync_service = MenuSyncService()
    return _menu_sync_service

"""
Menu import service.

Ingests a batch of heterogeneous records (plain items or combos) into one
outlet. Each record is processed inside its own failure boundary and gets
its own outcome row; a bad record never aborts the batch.

A dry run walks the exact same decision path, including category
auto-creation bookkeeping, but writes nothing and hands out synthetic ids
(``dry-run-<kind>-<n>``) for entities it would have created.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union
import structlog
from pydantic import ValidationError as PydanticValidationError

from config import settings
from models.menu import (
    ComboItem,
    ComboLineItem,
    ComboType,
    DuplicateStrategy,
    EntityKind,
    FoodType,
    OfferCombo,
    RegularCombo,
    OFFER_FIELDS,
    REGULAR_FIELDS,
    combo_to_document,
    effective_availability,
)
from models.menu_import import (
    ImportComboRecord,
    ImportItemRecord,
    ImportOptions,
    ImportResult,
    ImportRowResult,
    ImportStatus,
    is_combo_record,
)
from services.combo_pricing import price_combo
from services.menu_identity import MenuIndex
from services.menu_repository import MenuRepository, get_menu_repository
from services.slug_service import unique_slug
from exceptions import (
    AppError,
    CategoryNotFoundError,
    ComboValidationError,
    InvalidReferenceError,
)

logger = structlog.get_logger(__name__)

DRY_RUN_PREFIX = "dry-run"

KIND_LABELS = {
    EntityKind.CATEGORY: "category",
    EntityKind.FOOD_ITEM: "item",
    EntityKind.ADDON: "addon",
    EntityKind.COMBO: "combo",
}


def format_validation_error(error: PydanticValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{location}: {err['msg']}" if location else err["msg"])
    return "; ".join(parts)


@dataclass
class _ImportBatch:
    """Mutable state of one import call."""
    outlet_id: str
    options: ImportOptions
    index: MenuIndex
    synthetic_count: int = 0
    categories_created: list[str] = field(default_factory=list)


class MenuImportService:
    """
    Bulk menu import into one outlet.

    Handles:
    - Category resolution by id or name, with optional auto-creation
    - Duplicate detection on (name, price) with skip/update/create policies
    - Combo import with degradation to regular combos on unresolved items
    - Dry runs with identical outcome ledgers
    """

    def __init__(
        self,
        repository: Optional[MenuRepository] = None,
        default_tax_percentage: Optional[float] = None
    ):
        self.repository = repository or get_menu_repository()
        self.default_tax_percentage = (
            default_tax_percentage
            if default_tax_percentage is not None
            else settings.default_tax_percentage
        )

    # ===================
    # ENTRY POINT
    # ===================

    def import_menu(
        self,
        outlet_id: str,
        records: list[Any],
        options: Optional[ImportOptions] = None
    ) -> ImportResult:
        """
        Import a batch of records into an outlet.

        Args:
            outlet_id: Target outlet
            records: Raw item/combo records, processed in order
            options: dry_run, create_missing_categories, on_duplicate

        Returns:
            ImportResult with counters and one row per record

        Raises:
            OutletNotFoundError: If the outlet doesn't exist
        """
        options = options or ImportOptions()
        self.repository.require_outlet(outlet_id)

        logger.info(
            "menu_import_started",
            outlet_id=outlet_id,
            records=len(records),
            dry_run=options.dry_run,
            on_duplicate=options.on_duplicate.value,
            create_missing_categories=options.create_missing_categories
        )

        batch = _ImportBatch(
            outlet_id=outlet_id,
            options=options,
            index=MenuIndex.load(self.repository, outlet_id)
        )
        result = ImportResult(outlet_id=outlet_id, dry_run=options.dry_run)

        for position, raw in enumerate(records):
            result.record(self._import_record(batch, position, raw))

        result.categories_created = batch.categories_created

        logger.info(
            "menu_import_complete",
            outlet_id=outlet_id,
            dry_run=options.dry_run,
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
            failed=result.failed,
            categories_created=len(batch.categories_created)
        )
        return result

    def _import_record(self, batch: _ImportBatch, position: int, raw: Any) -> ImportRowResult:
        """Process one record inside its failure boundary."""
        combo = is_combo_record(raw)
        name = raw.get("name") if isinstance(raw, dict) else None
        record_type = "combo" if combo else "item"

        try:
            if combo:
                return self._import_combo(batch, position, raw)
            return self._import_item(batch, position, raw)
        except PydanticValidationError as e:
            message = format_validation_error(e)
        except AppError as e:
            message = e.message
        except Exception as e:
            logger.error(
                "import_record_failed",
                outlet_id=batch.outlet_id,
                index=position,
                error=str(e),
                error_type=type(e).__name__
            )
            message = str(e) or type(e).__name__

        logger.warning(
            "import_record_rejected",
            outlet_id=batch.outlet_id,
            index=position,
            name=name,
            reason=message
        )
        return ImportRowResult(
            index=position,
            name=name if isinstance(name, str) else None,
            record_type=record_type,
            status=ImportStatus.FAILED,
            error=message
        )

    # ===================
    # ITEMS
    # ===================

    def _import_item(self, batch: _ImportBatch, position: int, raw: Any) -> ImportRowResult:
        record = ImportItemRecord.model_validate(raw)

        for addon_id in record.addon_ids:
            if batch.index.get(EntityKind.ADDON, addon_id) is None:
                raise InvalidReferenceError("AddOn", addon_id, batch.outlet_id)

        category_id = self._resolve_category(batch, record)
        fields = self._item_fields(batch.outlet_id, record, category_id)

        existing_id = batch.index.resolve(EntityKind.FOOD_ITEM, fields)
        policy = batch.options.on_duplicate

        if existing_id and policy == DuplicateStrategy.SKIP:
            return ImportRowResult(
                index=position,
                name=record.name,
                status=ImportStatus.SKIPPED,
                entity_id=existing_id,
                category_id=category_id
            )

        if existing_id and policy == DuplicateStrategy.UPDATE:
            existing = batch.index.get(EntityKind.FOOD_ITEM, existing_id)
            row = self._write_update(
                batch,
                EntityKind.FOOD_ITEM,
                existing,
                self._item_update_fields(fields, record)
            )
            batch.index.replace(EntityKind.FOOD_ITEM, row)
            return ImportRowResult(
                index=position,
                name=record.name,
                status=ImportStatus.UPDATED,
                entity_id=existing_id,
                category_id=row.get("category_id")
            )

        row = self._write_create(batch, EntityKind.FOOD_ITEM, fields)
        batch.index.add(EntityKind.FOOD_ITEM, row)
        return ImportRowResult(
            index=position,
            name=record.name,
            status=ImportStatus.CREATED,
            entity_id=row["id"],
            category_id=category_id
        )

    def _resolve_category(self, batch: _ImportBatch, record: ImportItemRecord) -> Optional[str]:
        """
        Category id for an item record.

        Explicit ids must belong to the outlet. Names are matched
        case-insensitively against stored categories and those created
        earlier in the batch.
        """
        if record.category_id:
            if batch.index.get(EntityKind.CATEGORY, record.category_id) is None:
                raise InvalidReferenceError("Category", record.category_id, batch.outlet_id)
            return record.category_id

        if not record.category:
            return None

        existing = batch.index.find_category(record.category)
        if existing is not None:
            return existing["id"]

        if not batch.options.create_missing_categories:
            raise CategoryNotFoundError(record.category)

        fields = {
            "outlet_id": batch.outlet_id,
            "name": record.category,
            "slug": unique_slug(record.category, batch.index.taken_slugs),
            "display_order": batch.index.max_category_order + 1,
            "is_active": True,
        }
        row = self._write_create(batch, EntityKind.CATEGORY, fields)
        batch.index.add(EntityKind.CATEGORY, row)
        batch.categories_created.append(record.category)

        logger.info(
            "import_category_created",
            outlet_id=batch.outlet_id,
            category=record.category,
            category_id=row["id"],
            dry_run=batch.options.dry_run
        )
        return row["id"]

    def _item_fields(
        self,
        outlet_id: str,
        record: ImportItemRecord,
        category_id: Optional[str]
    ) -> dict:
        food_type = record.resolved_food_type()
        fields = {
            "outlet_id": outlet_id,
            "category_id": category_id,
            "name": record.name,
            "description": record.description,
            "item_type": record.item_type.value,
            "food_type": food_type.value,
            "is_veg": food_type == FoodType.VEG,
            "price": round(record.price, 2),
            "price_display_type": record.price_display_type.value,
            "tax_percentage": (
                record.tax_percentage
                if record.tax_percentage is not None
                else self.default_tax_percentage
            ),
            "is_active": record.is_active,
            "is_available": effective_availability(record.is_active, record.is_available),
            "variants": [v.model_dump() for v in record.variants],
            "addon_ids": list(record.addon_ids),
            "tags": list(record.tags),
            "image_url": record.image_url,
        }
        if record.display_order is not None:
            fields["display_order"] = record.display_order
        return fields

    @staticmethod
    def _item_update_fields(fields: dict, record: ImportItemRecord) -> dict:
        """Only overwrite what the record actually carries."""
        provided = record.model_fields_set
        update = {k: v for k, v in fields.items() if k != "outlet_id"}

        optional_columns = {
            "variants": {"variants"},
            "addon_ids": {"addon_ids"},
            "tags": {"tags"},
            "tax_percentage": {"tax_percentage"},
            "item_type": {"item_type"},
            "price_display_type": {"price_display_type"},
            "food_type": {"food_type", "is_veg"},
            "is_veg": {"food_type", "is_veg"},
            "is_active": {"is_active"},
            "is_available": {"is_active", "is_available"},
        }
        for column, sources in optional_columns.items():
            if not provided & sources:
                update.pop(column, None)

        for column in ("description", "image_url", "category_id"):
            if update.get(column) is None:
                update.pop(column, None)
        return update

    # ===================
    # COMBOS
    # ===================

    def _import_combo(self, batch: _ImportBatch, position: int, raw: Any) -> ImportRowResult:
        record = ImportComboRecord.model_validate(raw)
        combo = self._build_combo(batch, record)
        fields = combo_to_document(combo)

        existing_id = batch.index.resolve(EntityKind.COMBO, fields)
        policy = batch.options.on_duplicate

        if existing_id and policy == DuplicateStrategy.SKIP:
            return ImportRowResult(
                index=position,
                name=record.name,
                record_type="combo",
                status=ImportStatus.SKIPPED,
                entity_id=existing_id,
                combo_type=ComboType(combo.combo_type)
            )

        if existing_id and policy == DuplicateStrategy.UPDATE:
            existing = batch.index.get(EntityKind.COMBO, existing_id)
            cleared = REGULAR_FIELDS if combo.combo_type == ComboType.OFFER.value else OFFER_FIELDS
            update = {k: v for k, v in fields.items() if k != "outlet_id"}
            update.update({column: None for column in cleared})
            row = self._write_update(batch, EntityKind.COMBO, existing, update)
            batch.index.replace(EntityKind.COMBO, row)
            return ImportRowResult(
                index=position,
                name=record.name,
                record_type="combo",
                status=ImportStatus.UPDATED,
                entity_id=existing_id,
                combo_type=ComboType(combo.combo_type)
            )

        row = self._write_create(batch, EntityKind.COMBO, fields)
        batch.index.add(EntityKind.COMBO, row)
        return ImportRowResult(
            index=position,
            name=record.name,
            record_type="combo",
            status=ImportStatus.CREATED,
            entity_id=row["id"],
            combo_type=ComboType(combo.combo_type)
        )

    def _build_combo(
        self,
        batch: _ImportBatch,
        record: ImportComboRecord
    ) -> Union[OfferCombo, RegularCombo]:
        """
        Typed combo for a record.

        Offer combos need every referenced item to exist in the outlet;
        otherwise the combo degrades to a regular one built from the
        supplied custom items or from the references themselves.
        """
        common = {
            "outlet_id": batch.outlet_id,
            "name": record.name,
            "description": record.description,
            "image_url": record.image_url,
            "is_active": record.is_active,
            "display_order": record.display_order or 0,
        }

        if record.combo_type != ComboType.REGULAR and record.items:
            rows = [
                batch.index.get(EntityKind.FOOD_ITEM, ref.food_item_id) if ref.food_item_id else None
                for ref in record.items
            ]
            if all(row is not None for row in rows):
                items = [
                    ComboItem(food_item_id=ref.food_item_id, quantity=ref.quantity)
                    for ref in record.items
                ]
                lookup = {row["id"]: row.get("price") or 0 for row in rows}
                pricing = price_combo(
                    items,
                    record.discount_percentage,
                    lookup,
                    manual_price_override=record.manual_price_override,
                    explicit_price=record.price
                )
                return OfferCombo(
                    **common,
                    items=items,
                    discount_percentage=record.discount_percentage,
                    original_price=pricing.original_price,
                    price=pricing.effective_price,
                    manual_price_override=record.manual_price_override
                )

            logger.info(
                "import_combo_degraded",
                outlet_id=batch.outlet_id,
                combo=record.name,
                unresolved=[
                    ref.food_item_id or ref.name
                    for ref, row in zip(record.items, rows) if row is None
                ]
            )

        line_items = list(record.custom_items)
        if not line_items:
            for ref in record.items:
                row = batch.index.get(EntityKind.FOOD_ITEM, ref.food_item_id) if ref.food_item_id else None
                label = ref.name or (row or {}).get("name") or ref.food_item_id
                if label:
                    line_items.append(ComboLineItem(name=label, quantity=ref.quantity))

        if not line_items:
            raise ComboValidationError(
                "Regular combo requires at least one line item",
                details={"combo": record.name}
            )

        return RegularCombo(
            **common,
            custom_items=line_items,
            price=round(record.price or 0, 2)
        )

    # ===================
    # WRITES
    # ===================

    def _write_create(self, batch: _ImportBatch, kind: EntityKind, fields: dict) -> dict:
        if batch.options.dry_run:
            batch.synthetic_count += 1
            return {
                **fields,
                "id": f"{DRY_RUN_PREFIX}-{KIND_LABELS[kind]}-{batch.synthetic_count}"
            }
        return self.repository.create(kind, fields)

    def _write_update(
        self,
        batch: _ImportBatch,
        kind: EntityKind,
        existing: dict,
        fields: dict
    ) -> dict:
        if batch.options.dry_run:
            return {**existing, **fields}
        return self.repository.update(kind, existing["id"], fields)


# Singleton instance for convenience
_menu_import_service: Optional[MenuImportService] = None

def get_menu_import_service() -> MenuImportService:
    """Get or create MenuImportService instance."""
    global _menu_import_service
    if _menu_import_service is None:
        _menu_import_service = MenuImportService()
    return _menu_import_service

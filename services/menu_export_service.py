"""
Menu export service.

Reads an outlet's full menu graph and produces a portable snapshot:
category and add-on references are replaced by names, so the snapshot can
be read (or re-imported) without the source outlet's identifiers.

Also renders the snapshot as an Excel workbook whose Items sheet uses the
same columns the menu sheet parser reads.
"""

from datetime import datetime, timezone
from io import BytesIO
from typing import Any, Callable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Border, Side, PatternFill
from pydantic import ValidationError as PydanticValidationError
import structlog

from models.menu import (
    AddOn,
    Category,
    EntityKind,
    FoodItem,
    OfferCombo,
    combo_from_row,
)
from models.menu_export import (
    ExportAddOn,
    ExportCategory,
    ExportComboItem,
    ExportItem,
    ExportOfferCombo,
    ExportOutlet,
    ExportRegularCombo,
    MenuSnapshot,
)
from services.menu_repository import MenuRepository, get_menu_repository

logger = structlog.get_logger(__name__)

ITEM_COLUMNS = [
    "name",
    "price",
    "category",
    "description",
    "item_type",
    "is_veg",
    "tax_percentage",
    "is_active",
    "is_available",
    "variants",
    "addons",
]


def format_variants(variants) -> str:
    """Variants as 'Size:Price|Size:Price'."""
    return "|".join(f"{v.size}:{v.price:g}" for v in variants)


def _order_key(entity) -> tuple:
    return (entity.display_order, entity.name.lower())


class MenuExportService:
    """Builds portable snapshots of an outlet's menu."""

    def __init__(self, repository: Optional[MenuRepository] = None):
        self.repository = repository or get_menu_repository()

    def _load(self, outlet_id: str, kind: EntityKind, parse: Callable[[dict], Any]) -> list:
        """
        Read and parse every row of one kind, ordered by (display_order, name).

        Rows that no longer parse are logged and left out of the export.
        """
        entities = []
        for row in self.repository.find(outlet_id, kind):
            try:
                entities.append(parse(row))
            except PydanticValidationError as e:
                logger.warning(
                    "export_row_invalid",
                    outlet_id=outlet_id,
                    kind=kind.value,
                    entity_id=row.get("id"),
                    error=str(e)
                )
        entities.sort(key=_order_key)
        return entities

    def export_menu(self, outlet_id: str) -> MenuSnapshot:
        """
        Export the full menu of an outlet.

        Args:
            outlet_id: Outlet to export

        Returns:
            MenuSnapshot ordered by (display_order, name)

        Raises:
            OutletNotFoundError: If the outlet doesn't exist
        """
        outlet = self.repository.require_outlet(outlet_id)
        logger.info("menu_export_started", outlet_id=outlet_id)

        categories = self._load(outlet_id, EntityKind.CATEGORY, lambda row: Category(**row))
        items = self._load(outlet_id, EntityKind.FOOD_ITEM, lambda row: FoodItem(**row))
        addons = self._load(outlet_id, EntityKind.ADDON, lambda row: AddOn(**row))
        combos = self._load(outlet_id, EntityKind.COMBO, combo_from_row)

        category_names = {c.id: c.name for c in categories}
        addon_names = {a.id: a.name for a in addons}
        item_names = {i.id: i.name for i in items}

        snapshot = MenuSnapshot(
            outlet=ExportOutlet(id=outlet.id, name=outlet.name),
            exported_at=datetime.now(timezone.utc),
            categories=[
                ExportCategory(
                    name=c.name,
                    slug=c.slug,
                    description=c.description,
                    image_url=c.image_url,
                    display_order=c.display_order,
                    is_active=c.is_active
                )
                for c in categories
            ],
            items=[
                ExportItem(
                    name=i.name,
                    category=category_names.get(i.category_id) if i.category_id else None,
                    description=i.description,
                    item_type=i.item_type,
                    food_type=i.food_type,
                    is_veg=i.is_veg,
                    price=i.price,
                    price_display_type=i.price_display_type,
                    tax_percentage=i.tax_percentage,
                    is_active=i.is_active,
                    is_available=i.is_available,
                    variants=i.variants,
                    addons=[addon_names[a] for a in i.addon_ids if a in addon_names],
                    tags=i.tags,
                    image_url=i.image_url,
                    display_order=i.display_order
                )
                for i in items
            ],
            addons=[
                ExportAddOn(
                    name=a.name,
                    price=a.price,
                    category=a.category,
                    is_active=a.is_active,
                    display_order=a.display_order
                )
                for a in addons
            ],
            combos=[self._export_combo(c, item_names) for c in combos]
        )

        logger.info(
            "menu_export_complete",
            outlet_id=outlet_id,
            categories=len(snapshot.categories),
            items=len(snapshot.items),
            addons=len(snapshot.addons),
            combos=len(snapshot.combos)
        )
        return snapshot

    @staticmethod
    def _export_combo(combo, item_names: dict[str, str]):
        common = {
            "name": combo.name,
            "description": combo.description,
            "image_url": combo.image_url,
            "price": combo.price,
            "is_active": combo.is_active,
            "display_order": combo.display_order,
        }
        if isinstance(combo, OfferCombo):
            return ExportOfferCombo(
                **common,
                items=[
                    ExportComboItem(
                        name=item_names.get(i.food_item_id, i.food_item_id),
                        quantity=i.quantity
                    )
                    for i in combo.items
                ],
                original_price=combo.original_price,
                discount_percentage=combo.discount_percentage,
                manual_price_override=combo.manual_price_override
            )
        return ExportRegularCombo(
            **common,
            custom_items=[
                ExportComboItem(name=line.name, quantity=line.quantity)
                for line in combo.custom_items
            ]
        )

    # ===================
    # EXCEL
    # ===================

    def export_workbook(self, outlet_id: str) -> bytes:
        """
        Render the outlet's menu snapshot as an Excel workbook.

        Sheets: Items, Categories, AddOns, Combos.

        Returns:
            Contents of the .xlsx file
        """
        snapshot = self.export_menu(outlet_id)

        wb = Workbook()
        bold_font = Font(bold=True)
        header_fill = PatternFill(start_color="E0E8FF", end_color="E0E8FF", fill_type="solid")
        thin_border = Border(bottom=Side(style="thin", color="000000"))

        def write_sheet(ws, headers: list[str], rows: list[list]):
            ws.append(headers)
            for cell in ws[1]:
                cell.font = bold_font
                cell.fill = header_fill
                cell.border = thin_border
            for values in rows:
                ws.append(values)
            ws.column_dimensions["A"].width = 30

        ws_items = wb.active
        ws_items.title = "Items"
        write_sheet(ws_items, ITEM_COLUMNS, [
            [
                i.name,
                i.price,
                i.category or "",
                i.description or "",
                i.item_type.value,
                i.is_veg,
                i.tax_percentage,
                i.is_active,
                i.is_available,
                format_variants(i.variants),
                ", ".join(i.addons),
            ]
            for i in snapshot.items
        ])

        write_sheet(
            wb.create_sheet("Categories"),
            ["name", "slug", "description", "display_order", "is_active"],
            [
                [c.name, c.slug or "", c.description or "", c.display_order, c.is_active]
                for c in snapshot.categories
            ]
        )

        write_sheet(
            wb.create_sheet("AddOns"),
            ["name", "price", "category", "display_order", "is_active"],
            [
                [a.name, a.price, a.category or "", a.display_order, a.is_active]
                for a in snapshot.addons
            ]
        )

        combo_rows = []
        for c in snapshot.combos:
            lines = c.items if c.combo_type == "offer" else c.custom_items
            combo_rows.append([
                c.name,
                c.combo_type,
                c.price,
                ", ".join(f"{line.quantity}x {line.name}" for line in lines),
                c.is_active,
            ])
        write_sheet(
            wb.create_sheet("Combos"),
            ["name", "combo_type", "price", "contents", "is_active"],
            combo_rows
        )

        output = BytesIO()
        wb.save(output)

        logger.info("menu_workbook_generated", outlet_id=outlet_id, items=len(snapshot.items))
        return output.getvalue()


# Singleton instance for convenience
_menu_export_service: Optional[MenuExportService] = None

def get_menu_export_service() -> MenuExportService:
    """Get or create MenuExportService instance."""
    global _menu_export_service
    if _menu_export_service is None:
        _menu_export_service = MenuExportService()
    return _menu_export_service

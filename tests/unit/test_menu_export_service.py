"""
Tests for menu export.
"""

from io import BytesIO

import pytest
from openpyxl import load_workbook

from exceptions import OutletNotFoundError
from services.menu_export_service import MenuExportService, format_variants
from models.menu import Variant
from tests.factories import (
    AddOnFactory,
    CategoryFactory,
    ComboFactory,
    FoodItemFactory,
    OutletFactory,
)


@pytest.fixture
def menu(seed):
    seed("outlets", OutletFactory.create(id="o1", name="Downtown"))
    seed(
        "categories",
        CategoryFactory.create(outlet_id="o1", id="c-drinks", name="Drinks", display_order=2),
        CategoryFactory.create(outlet_id="o1", id="c-mains", name="Mains", display_order=1),
        CategoryFactory.create(outlet_id="o1", id="c-breads", name="Breads", display_order=1),
    )
    seed("addons", AddOnFactory.create(outlet_id="o1", id="a1", name="Extra Cheese"))
    seed(
        "food_items",
        FoodItemFactory.create(outlet_id="o1", id="i1", name="Tea", price=20, category_id="c-drinks"),
        FoodItemFactory.create(
            outlet_id="o1", id="i2", name="Pizza", price=250, category_id="c-mains",
            addon_ids=["a1"], variants=[{"size": "Small", "price": 250}, {"size": "Large", "price": 400}]
        ),
        FoodItemFactory.create(outlet_id="o1", id="i3", name="Mystery", price=10),
    )
    seed(
        "combos",
        ComboFactory.offer(
            outlet_id="o1", name="Pizza Meal", items=[{"food_item_id": "i2", "quantity": 1},
                                                      {"food_item_id": "i1", "quantity": 2}],
            original_price=290, price=261, discount_percentage=10
        ),
        ComboFactory.regular(
            outlet_id="o1", name="Snack Box", custom_items=[{"name": "Samosa", "quantity": 3}], price=60
        ),
    )


@pytest.fixture
def service(repository):
    return MenuExportService(repository)


class TestExportMenu:

    def test_unknown_outlet(self, service):
        with pytest.raises(OutletNotFoundError):
            service.export_menu("missing")

    def test_categories_ordered_by_display_order_then_name(self, service, menu):
        snapshot = service.export_menu("o1")

        assert [c.name for c in snapshot.categories] == ["Breads", "Mains", "Drinks"]

    def test_item_references_denormalized(self, service, menu):
        snapshot = service.export_menu("o1")
        items = {i.name: i for i in snapshot.items}

        assert items["Pizza"].category == "Mains"
        assert items["Pizza"].addons == ["Extra Cheese"]
        assert items["Tea"].category == "Drinks"
        assert items["Mystery"].category is None
        assert [v.size for v in items["Pizza"].variants] == ["Small", "Large"]

    def test_combos_follow_their_type(self, service, menu):
        snapshot = service.export_menu("o1")
        combos = {c.name: c for c in snapshot.combos}

        offer = combos["Pizza Meal"]
        assert offer.combo_type == "offer"
        assert [(line.name, line.quantity) for line in offer.items] == [("Pizza", 1), ("Tea", 2)]
        assert offer.original_price == 290

        regular = combos["Snack Box"]
        assert regular.combo_type == "regular"
        assert [(line.name, line.quantity) for line in regular.custom_items] == [("Samosa", 3)]

    def test_snapshot_serializes_without_ids(self, service, menu):
        data = service.export_menu("o1").model_dump(mode="json")

        assert data["outlet"] == {"id": "o1", "name": "Downtown"}
        assert "category_id" not in data["items"][0]
        assert "id" not in data["categories"][0]

    def test_empty_outlet(self, service, seed):
        seed("outlets", OutletFactory.create(id="o2"))

        snapshot = service.export_menu("o2")

        assert snapshot.categories == snapshot.items == snapshot.addons == snapshot.combos == []

    def test_null_ordering_treated_as_zero(self, service, seed):
        seed("outlets", OutletFactory.create(id="o3"))
        seed(
            "food_items",
            FoodItemFactory.create(outlet_id="o3", name="Tea", display_order=1),
            {**FoodItemFactory.create(outlet_id="o3", name="Rice"), "display_order": None, "is_active": None},
        )

        snapshot = service.export_menu("o3")

        assert [(i.name, i.display_order) for i in snapshot.items] == [("Rice", 0), ("Tea", 1)]
        assert snapshot.items[0].is_active is True

    def test_unparseable_rows_left_out(self, service, seed):
        seed("outlets", OutletFactory.create(id="o3"))
        seed(
            "categories",
            CategoryFactory.create(outlet_id="o3", name="Mains"),
            {**CategoryFactory.create(outlet_id="o3"), "name": ""},
        )
        seed(
            "food_items",
            FoodItemFactory.create(outlet_id="o3", name="Rice"),
            FoodItemFactory.create(outlet_id="o3", name="Refund", price=-5),
        )
        seed(
            "addons",
            AddOnFactory.create(outlet_id="o3", name="Ghee"),
            AddOnFactory.create(outlet_id="o3", name="Broken", price=-1),
        )
        seed(
            "combos",
            ComboFactory.regular(outlet_id="o3", name="Snack Box"),
            {**ComboFactory.regular(outlet_id="o3", name="Hybrid"), "items": [{"food_item_id": "x", "quantity": 1}]},
        )

        snapshot = service.export_menu("o3")

        assert [c.name for c in snapshot.categories] == ["Mains"]
        assert [i.name for i in snapshot.items] == ["Rice"]
        assert [a.name for a in snapshot.addons] == ["Ghee"]
        assert [c.name for c in snapshot.combos] == ["Snack Box"]


class TestExportWorkbook:

    def test_one_sheet_per_kind(self, service, menu):
        wb = load_workbook(BytesIO(service.export_workbook("o1")))

        assert wb.sheetnames == ["Items", "Categories", "AddOns", "Combos"]

    def test_items_sheet_matches_import_columns(self, service, menu):
        wb = load_workbook(BytesIO(service.export_workbook("o1")))
        ws = wb["Items"]

        header = [cell.value for cell in ws[1]]
        assert header[:3] == ["name", "price", "category"]
        assert "variants" in header

        rows = {row[0]: row for row in ws.iter_rows(min_row=2, values_only=True)}
        pizza = rows["Pizza"]
        assert pizza[header.index("variants")] == "Small:250|Large:400"
        assert pizza[header.index("addons")] == "Extra Cheese"
        assert ws["A1"].font.bold


def test_format_variants():
    variants = [Variant(size="Half", price=120), Variant(size="Full", price=199.5)]

    assert format_variants(variants) == "Half:120|Full:199.5"

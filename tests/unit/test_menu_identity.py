"""
Tests for identity keys, the pre-loaded menu index and the resolver.
"""

import pytest

from models.menu import EntityKind
from services.menu_identity import (
    AddOnKey,
    CategoryKey,
    ComboKey,
    FoodItemKey,
    IdentityResolver,
    MenuIndex,
    identity_key,
)
from tests.factories import AddOnFactory, CategoryFactory, FoodItemFactory


class TestIdentityKeys:

    def test_item_key_ignores_case_and_rounds_price(self):
        assert FoodItemKey.of("Paneer Tikka", 199.999) == FoodItemKey.of("paneer tikka", 200.0)

    def test_item_key_includes_price(self):
        assert FoodItemKey.of("Tea", 20) != FoodItemKey.of("Tea", 25)

    def test_category_key_uses_slug(self):
        assert CategoryKey.of("o1", "Main Course") == CategoryKey("o1", "main-course")

    def test_category_key_scoped_to_outlet(self):
        assert CategoryKey.of("o1", "Mains") != CategoryKey.of("o2", "Mains")

    def test_keys_of_different_kinds_never_equal(self):
        # Same name and price, different entity kinds
        assert FoodItemKey.of("Combo", 100) != ComboKey.of("Combo", 100)
        assert AddOnKey.of("Mains") != CategoryKey.of("o1", "Mains")

    def test_identity_key_dispatches_on_kind(self):
        fields = {"name": "Tea", "price": 20}
        assert identity_key("o1", EntityKind.FOOD_ITEM, fields) == FoodItemKey("tea", 20.0)
        assert identity_key("o1", EntityKind.ADDON, fields) == AddOnKey("tea")
        assert identity_key("o1", EntityKind.CATEGORY, fields) == CategoryKey("o1", "tea")
        assert identity_key("o1", EntityKind.COMBO, fields) == ComboKey("tea", 20.0)


class TestMenuIndex:

    def test_load_registers_rows(self, repository, seed):
        seed("categories", CategoryFactory.create(outlet_id="o1", id="c1", name="Mains", display_order=3))
        seed("food_items", FoodItemFactory.create(outlet_id="o1", id="i1", name="Rice", price=100))

        index = MenuIndex.load(repository, "o1")

        assert index.resolve(EntityKind.FOOD_ITEM, {"name": "rice", "price": 100}) == "i1"
        assert index.find_category("MAINS")["id"] == "c1"
        assert index.max_category_order == 3
        assert "mains" in index.taken_slugs

    def test_first_registered_wins(self):
        index = MenuIndex(outlet_id="o1")
        index.add(EntityKind.ADDON, {"id": "a1", "name": "Cheese"})
        index.add(EntityKind.ADDON, {"id": "a2", "name": "cheese"})

        assert index.resolve(EntityKind.ADDON, {"name": "Cheese"}) == "a1"
        assert index.get(EntityKind.ADDON, "a2") is not None

    def test_find_category_falls_back_to_slug(self):
        index = MenuIndex(outlet_id="o1")
        index.add(EntityKind.CATEGORY, {"id": "c1", "name": "Main-Course", "slug": "main-course"})

        assert index.find_category("Main Course")["id"] == "c1"

    def test_replace_refreshes_row(self):
        index = MenuIndex(outlet_id="o1")
        index.add(EntityKind.FOOD_ITEM, {"id": "i1", "name": "Rice", "price": 100})
        index.replace(EntityKind.FOOD_ITEM, {"id": "i1", "name": "Rice", "price": 100, "description": "x"})

        assert index.get(EntityKind.FOOD_ITEM, "i1")["description"] == "x"


class TestIdentityResolver:

    def test_live_lookup(self, repository, seed):
        seed("addons", AddOnFactory.create(outlet_id="o1", id="a1", name="Extra Cheese"))

        resolver = IdentityResolver(repository)

        assert resolver.resolve("o1", EntityKind.ADDON, {"name": "extra cheese"}) == "a1"
        assert resolver.resolve("o2", EntityKind.ADDON, {"name": "extra cheese"}) is None

    def test_index_and_live_lookup_agree(self, repository, seed):
        seed(
            "food_items",
            FoodItemFactory.create(outlet_id="o1", id="i1", name="Rice", price=100),
            FoodItemFactory.create(outlet_id="o1", id="i2", name="Rice", price=120),
        )
        index = MenuIndex.load(repository, "o1")

        for fields in ({"name": "RICE", "price": 120}, {"name": "Rice", "price": 90}):
            live = IdentityResolver(repository).resolve("o1", EntityKind.FOOD_ITEM, fields)
            cached = IdentityResolver(repository, index).resolve("o1", EntityKind.FOOD_ITEM, fields)
            assert live == cached

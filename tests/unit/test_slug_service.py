"""
Tests for slug generation and name normalization.
"""

import pytest

from services.slug_service import SlugGenerator, unique_slug
from utils.text_utils import normalize_name, slugify, strip_accents
from tests.factories import CategoryFactory


class TestSlugify:
    """Tests for slugify."""

    def test_lowercases_and_hyphenates(self):
        assert slugify("Main Course") == "main-course"

    def test_collapses_symbols(self):
        assert slugify("Soups & Salads!") == "soups-salads"

    def test_strips_accents(self):
        assert slugify("Café Spécial") == "cafe-special"

    def test_trims_hyphens(self):
        assert slugify("  --Desserts--  ") == "desserts"

    def test_empty_falls_back(self):
        assert slugify("") == "category"
        assert slugify(None) == "category"

    def test_only_symbols_falls_back(self):
        assert slugify("!!!") == "category"


class TestNormalizeName:

    def test_case_and_whitespace(self):
        assert normalize_name("  MASALA   Chai ") == "masala chai"

    def test_none(self):
        assert normalize_name(None) == ""

    def test_strip_accents_keeps_base(self):
        assert strip_accents("Crème Brûlée") == "Creme Brulee"


class TestUniqueSlug:
    """Tests for collision handling."""

    def test_no_collision(self):
        assert unique_slug("Main Course", set()) == "main-course"

    def test_first_collision(self):
        assert unique_slug("Main Course", {"main-course"}) == "main-course-1"

    def test_skips_taken_suffixes(self):
        taken = {"mains", "mains-1", "mains-2"}
        assert unique_slug("Mains", taken) == "mains-3"

    def test_result_never_taken(self):
        taken = {"tea"} | {f"tea-{i}" for i in range(1, 20)}
        slug = unique_slug("Tea", taken)
        assert slug not in taken
        assert slug == "tea-20"

    def test_repeated_names_stay_unique(self):
        taken = set()
        for _ in range(5):
            taken.add(unique_slug("Starters", taken))
        assert taken == {"starters", "starters-1", "starters-2", "starters-3", "starters-4"}


class TestSlugGenerator:
    """Tests for outlet-scoped slug generation."""

    def test_unique_within_outlet(self, repository, seed):
        seed(
            "categories",
            CategoryFactory.create(outlet_id="o1", name="Mains", slug="mains"),
            CategoryFactory.create(outlet_id="o1", name="Mains 2", slug="mains-1"),
        )

        assert SlugGenerator(repository).generate("o1", "Mains") == "mains-2"

    def test_other_outlets_ignored(self, repository, seed):
        seed("categories", CategoryFactory.create(outlet_id="o2", name="Mains", slug="mains"))

        assert SlugGenerator(repository).generate("o1", "Mains") == "mains"

    def test_excluded_category_does_not_collide(self, repository, seed):
        seed("categories", CategoryFactory.create(outlet_id="o1", id="c1", name="Mains", slug="mains"))

        assert SlugGenerator(repository).generate("o1", "Mains", exclude_id="c1") == "mains"

"""
Identity resolution for menu entities.

Decides whether an incoming record matches an entity that already exists
in an outlet. Keys are explicit per kind so a category name can never
collide with an item name:

- FoodItem: (lower-cased name, price rounded to 2 decimals)
- Category: (outlet id, slug derived from the name)
- AddOn: lower-cased name
- Combo: (lower-cased name, price rounded to 2 decimals)
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union
import structlog

from models.menu import EntityKind
from services.menu_repository import MenuRepository, get_menu_repository
from utils.text_utils import normalize_name, slugify

logger = structlog.get_logger(__name__)


def _money(value: Any) -> float:
    return round(float(value or 0), 2)


@dataclass(frozen=True)
class FoodItemKey:
    name: str
    price: float

    @classmethod
    def of(cls, name: str, price: Any) -> "FoodItemKey":
        return cls(normalize_name(name), _money(price))


@dataclass(frozen=True)
class CategoryKey:
    outlet_id: str
    slug: str

    @classmethod
    def of(cls, outlet_id: str, name: str) -> "CategoryKey":
        return cls(outlet_id, slugify(name))


@dataclass(frozen=True)
class AddOnKey:
    name: str

    @classmethod
    def of(cls, name: str) -> "AddOnKey":
        return cls(normalize_name(name))


@dataclass(frozen=True)
class ComboKey:
    name: str
    price: float

    @classmethod
    def of(cls, name: str, price: Any) -> "ComboKey":
        return cls(normalize_name(name), _money(price))


IdentityKey = Union[FoodItemKey, CategoryKey, AddOnKey, ComboKey]


def identity_key(outlet_id: str, kind: EntityKind, fields: dict) -> IdentityKey:
    """Build the match key of a record of the given kind."""
    if kind == EntityKind.FOOD_ITEM:
        return FoodItemKey.of(fields.get("name", ""), fields.get("price"))
    if kind == EntityKind.CATEGORY:
        return CategoryKey.of(outlet_id, fields.get("name", ""))
    if kind == EntityKind.ADDON:
        return AddOnKey.of(fields.get("name", ""))
    return ComboKey.of(fields.get("name", ""), fields.get("price"))


@dataclass
class MenuIndex:
    """
    Pre-loaded working set of one outlet's menu.

    Built once per operation to avoid a query per record. Callers register
    the entities they create (or would create, in a dry run) so later
    records in the same batch see them.
    """

    outlet_id: str
    by_key: dict[IdentityKey, dict] = field(default_factory=dict)
    by_id: dict[EntityKind, dict[str, dict]] = field(default_factory=dict)
    categories_by_name: dict[str, dict] = field(default_factory=dict)
    taken_slugs: set[str] = field(default_factory=set)
    max_category_order: int = -1

    @classmethod
    def load(
        cls,
        repository: MenuRepository,
        outlet_id: str,
        kinds: tuple[EntityKind, ...] = tuple(EntityKind)
    ) -> "MenuIndex":
        """Load the requested entity kinds of an outlet into a new index."""
        index = cls(outlet_id=outlet_id)
        for kind in kinds:
            for row in repository.find(outlet_id, kind):
                index.add(kind, row)

        logger.debug(
            "menu_index_loaded",
            outlet_id=outlet_id,
            kinds=[k.value for k in kinds],
            size=len(index.by_key)
        )
        return index

    def add(self, kind: EntityKind, row: dict) -> None:
        """Register an entity. The first entity registered under a key wins."""
        self.by_id.setdefault(kind, {})[row["id"]] = row
        self.by_key.setdefault(identity_key(self.outlet_id, kind, row), row)

        if kind == EntityKind.CATEGORY:
            self.categories_by_name.setdefault(normalize_name(row.get("name")), row)
            if row.get("slug"):
                self.taken_slugs.add(row["slug"])
            self.max_category_order = max(self.max_category_order, row.get("display_order") or 0)

    def replace(self, kind: EntityKind, row: dict) -> None:
        """Refresh a registered entity after an update."""
        self.by_id.setdefault(kind, {})[row["id"]] = row
        key = identity_key(self.outlet_id, kind, row)
        current = self.by_key.get(key)
        if current is None or current.get("id") == row["id"]:
            self.by_key[key] = row

    def get(self, kind: EntityKind, entity_id: str) -> Optional[dict]:
        return self.by_id.get(kind, {}).get(entity_id)

    def rows(self, kind: EntityKind) -> list[dict]:
        return list(self.by_id.get(kind, {}).values())

    def find_category(self, name: str) -> Optional[dict]:
        """Category by case-insensitive name, falling back to slug identity."""
        row = self.categories_by_name.get(normalize_name(name))
        if row is not None:
            return row
        return self.by_key.get(CategoryKey.of(self.outlet_id, name))

    def resolve(self, kind: EntityKind, fields: dict) -> Optional[str]:
        """Id of the existing entity matching the record, or None."""
        row = self.by_key.get(identity_key(self.outlet_id, kind, fields))
        return row["id"] if row else None


class IdentityResolver:
    """
    Resolves incoming records to existing entity ids.

    Uses a pre-loaded MenuIndex when one is registered for the outlet,
    otherwise queries the repository.
    """

    def __init__(
        self,
        repository: Optional[MenuRepository] = None,
        index: Optional[MenuIndex] = None
    ):
        self.repository = repository or get_menu_repository()
        self.index = index

    def resolve(self, outlet_id: str, kind: EntityKind, fields: dict) -> Optional[str]:
        """
        Match a candidate record against the outlet's entities.

        Args:
            outlet_id: Outlet to search
            kind: Entity kind of the candidate
            fields: Candidate fields (name, and price for items/combos)

        Returns:
            Existing entity id, or None
        """
        if self.index is not None and self.index.outlet_id == outlet_id:
            return self.index.resolve(kind, fields)

        key = identity_key(outlet_id, kind, fields)
        for row in self.repository.find(outlet_id, kind):
            if identity_key(outlet_id, kind, row) == key:
                return row["id"]
        return None

"""
Slug generation for outlet-scoped categories.
"""

from typing import Iterable, Optional
import structlog

from models.menu import EntityKind
from services.menu_repository import MenuRepository, get_menu_repository
from utils.text_utils import slugify

logger = structlog.get_logger(__name__)


def unique_slug(base_name: str, taken: Iterable[str]) -> str:
    """
    Slug for base_name that is not in taken.

    Appends -1, -2, ... on collision. Terminates after at most
    len(taken) + 1 candidates.

    Examples:
        unique_slug("Main Course", set()) → "main-course"
        unique_slug("Main Course", {"main-course"}) → "main-course-1"
    """
    taken = set(taken)
    base = slugify(base_name)
    if base not in taken:
        return base

    counter = 1
    while f"{base}-{counter}" in taken:
        counter += 1
    return f"{base}-{counter}"


class SlugGenerator:
    """Derives outlet-unique category slugs from display names."""

    def __init__(self, repository: Optional[MenuRepository] = None):
        self.repository = repository or get_menu_repository()

    def generate(
        self,
        outlet_id: str,
        base_name: str,
        exclude_id: Optional[str] = None
    ) -> str:
        """
        Generate a slug unique among the outlet's categories.

        Args:
            outlet_id: Outlet the category belongs to
            base_name: Display name to derive the slug from
            exclude_id: Category being renamed (its own slug doesn't collide)

        Returns:
            Unique slug
        """
        rows = self.repository.find(outlet_id, EntityKind.CATEGORY)
        taken = {
            row["slug"] for row in rows
            if row.get("slug") and row.get("id") != exclude_id
        }
        slug = unique_slug(base_name, taken)

        logger.debug("slug_generated", outlet_id=outlet_id, base_name=base_name, slug=slug)
        return slug

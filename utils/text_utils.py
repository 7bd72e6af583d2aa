"""
Text utilities for menu names and slugs.

Used for identity matching and URL-safe slug derivation.
"""

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_SLUG = "category"


def strip_accents(text: str) -> str:
    """
    Remove accent marks while keeping the base characters.

    - "Café" → "Cafe"
    - "Crème Brûlée" → "Creme Brulee"
    """
    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize('NFD', text)

    # Remove combining characters (Unicode category 'Mn')
    return ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a display name for case-insensitive matching.

    - "  Paneer Tikka " → "paneer tikka"
    - "MASALA   Chai" → "masala chai"

    Args:
        name: Display name (may be None)

    Returns:
        Lowercase name with collapsed whitespace, "" for empty input
    """
    if not name:
        return ""
    return " ".join(name.split()).lower()


def slugify(name: Optional[str]) -> str:
    """
    Derive a URL-safe slug from a display name.

    - "Main Course" → "main-course"
    - "Soups & Salads!" → "soups-salads"
    - "Café Specials" → "cafe-specials"

    Args:
        name: Display name

    Returns:
        Lowercase hyphenated slug; DEFAULT_SLUG when nothing alphanumeric remains
    """
    if not name:
        return DEFAULT_SLUG
    slug = _NON_ALNUM.sub("-", strip_accents(name).lower()).strip("-")
    return slug or DEFAULT_SLUG

"""
Menu engine exceptions.

Import from here rather than from exceptions.errors.
"""

from exceptions.errors import (
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,
    OutletNotFoundError,
    CategoryNotFoundError,
    InvalidReferenceError,
    ComboValidationError,
    BulkLimitError,
    SyncTargetIsSourceError,
    MenuSheetParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Outlets and menu entities
    "OutletNotFoundError",
    "CategoryNotFoundError",
    "InvalidReferenceError",
    "ComboValidationError",

    # Bulk operations
    "BulkLimitError",
    "SyncTargetIsSourceError",

    # Menu sheet parser
    "MenuSheetParseError",
]

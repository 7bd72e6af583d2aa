"""
Spreadsheet parsers module.
"""

from parsers.menu_sheet_parser import (
    parse_menu_sheet,
    parse_variants,
    MenuSheetParseResult,
    MenuSheetRowError,
)

__all__ = [
    "parse_menu_sheet",
    "parse_variants",
    "MenuSheetParseResult",
    "MenuSheetRowError",
]

"""
Menu spreadsheet parser.

Turns an uploaded .xlsx or .csv menu sheet into import records for the
menu import pipeline. One row per food item:

    name | price | category | description | item_type | is_veg |
    tax_percentage | is_active | is_available | variants

Variants are written as "Size:Price|Size:Price", e.g. "Half:120|Full:200".
Rows with problems are reported and left out; the rest are returned.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union
import structlog

import pandas as pd

from exceptions import MenuSheetParseError

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ["name", "price"]

ITEMS_SHEET = "Items"

TRUE_VALUES = {"true", "yes", "y", "1", "veg"}
FALSE_VALUES = {"false", "no", "n", "0", "non-veg", "nonveg", "non veg"}


@dataclass
class MenuSheetRowError:
    """Single validation error from parsing."""
    row: int
    field: str
    error: str


@dataclass
class MenuSheetParseResult:
    """Result of parsing a menu sheet."""
    records: list[dict] = field(default_factory=list)
    errors: list[MenuSheetRowError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def has_data(self) -> bool:
        """True if any record was parsed."""
        return len(self.records) > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "records": self.records,
            "errors": [
                {"row": e.row, "field": e.field, "error": e.error}
                for e in self.errors
            ],
        }


def parse_menu_sheet(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None
) -> MenuSheetParseResult:
    """
    Parse a menu spreadsheet.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original file name; a ".csv" suffix selects the CSV reader

    Returns:
        MenuSheetParseResult with import records and row errors

    Raises:
        MenuSheetParseError: If the file cannot be read or lacks required columns
    """
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    is_csv = name.lower().endswith(".csv")

    logger.info("parsing_menu_sheet", filename=name or None, csv=is_csv)

    try:
        if is_csv:
            df = pd.read_csv(file)
        else:
            excel = pd.ExcelFile(file, engine="openpyxl")
            sheet = ITEMS_SHEET if ITEMS_SHEET in excel.sheet_names else excel.sheet_names[0]
            df = excel.parse(sheet)
    except Exception as e:
        logger.error("menu_sheet_read_failed", error=str(e))
        raise MenuSheetParseError(
            message="Failed to read menu sheet",
            details={"original_error": str(e)}
        )

    df.columns = [_normalize_column(col) for col in df.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise MenuSheetParseError(
            message=f"Missing required columns: {', '.join(missing)}",
            details={"missing": missing}
        )

    result = MenuSheetParseResult()

    for idx, row in df.iterrows():
        row_num = idx + 2  # Excel row (1-indexed + header)

        if _is_blank(row.get("name")):
            continue

        record, row_errors = _parse_row(row, row_num)
        if row_errors:
            result.errors.extend(row_errors)
        else:
            result.records.append(record)

    logger.info(
        "menu_sheet_parsed",
        record_count=len(result.records),
        error_count=len(result.errors),
        success=result.success
    )
    return result


def _parse_row(row: pd.Series, row_num: int) -> tuple[dict, list[MenuSheetRowError]]:
    errors = []
    record: dict[str, Any] = {"name": str(row["name"]).strip()}

    price = row.get("price")
    if _is_blank(price):
        errors.append(MenuSheetRowError(row_num, "price", "Required field is empty"))
    elif not _is_valid_amount(price):
        errors.append(MenuSheetRowError(row_num, "price", "Must be a non-negative number"))
    else:
        record["price"] = round(float(price), 2)

    for column in ("category", "description"):
        value = row.get(column)
        if not _is_blank(value):
            record[column] = str(value).strip()

    item_type = row.get("item_type")
    if not _is_blank(item_type):
        record["item_type"] = str(item_type).strip().lower()

    tax = row.get("tax_percentage")
    if not _is_blank(tax):
        if _is_valid_amount(tax) and float(tax) <= 100:
            record["tax_percentage"] = float(tax)
        else:
            errors.append(MenuSheetRowError(row_num, "tax_percentage", "Must be between 0 and 100"))

    for column in ("is_veg", "is_active", "is_available"):
        value = row.get(column)
        if _is_blank(value):
            continue
        parsed = _parse_bool(value)
        if parsed is None:
            errors.append(MenuSheetRowError(row_num, column, f"Unrecognized value: {value}"))
        else:
            record[column] = parsed

    variants = row.get("variants")
    if not _is_blank(variants):
        try:
            record["variants"] = parse_variants(str(variants))
        except ValueError as e:
            errors.append(MenuSheetRowError(row_num, "variants", str(e)))

    return record, errors


# ===================
# HELPER FUNCTIONS
# ===================

def parse_variants(value: str) -> list[dict]:
    """
    Parse "Size:Price|Size:Price" into variant dicts.

    "Half:120|Full:200" -> [{"size": "Half", "price": 120.0}, {"size": "Full", "price": 200.0}]
    """
    variants = []
    for part in value.split("|"):
        part = part.strip()
        if not part:
            continue
        size, sep, price = part.rpartition(":")
        if not sep or not size.strip():
            raise ValueError(f"Expected Size:Price, got '{part}'")
        if not _is_valid_amount(price):
            raise ValueError(f"Invalid price for variant '{size.strip()}'")
        variants.append({"size": size.strip(), "price": round(float(price), 2)})
    return variants


def _normalize_column(col: str) -> str:
    """
    Normalize column name for consistent matching.

    "Tax Percentage" -> "tax_percentage"
    "Is Veg" -> "is_veg"
    """
    return str(col).lower().strip().replace(" ", "_").replace("-", "_")


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return bool(pd.isna(value))


def _parse_bool(value) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text.endswith(".0"):
        text = text[:-2]
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


def _is_valid_amount(value) -> bool:
    """Check if value is a non-negative number."""
    try:
        return float(value) >= 0
    except (ValueError, TypeError):
        return False

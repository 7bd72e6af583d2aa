"""
Menu import API routes.

Bulk import of items and combos into an outlet, from JSON records or an
uploaded spreadsheet. Per-record failures are reported in-band with a
200 response.
"""

from io import BytesIO

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse
import structlog

from config import settings
from models.menu import DuplicateStrategy
from models.menu_import import (
    ImportOptions,
    ImportRequest,
    ImportResult,
    ImportUploadResult,
    SheetRowError,
)
from parsers.menu_sheet_parser import parse_menu_sheet
from services.menu_import_service import get_menu_import_service
from exceptions import AppError, BulkLimitError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/outlets/{outlet_id}/menu", tags=["Menu Import"])

SHEET_EXTENSIONS = (".xlsx", ".xls", ".csv")


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


def _check_batch_size(count: int) -> None:
    if count > settings.import_max_records:
        raise BulkLimitError("IMPORT_TOO_LARGE", "records", count, settings.import_max_records)


# ===================
# IMPORT ROUTES
# ===================

@router.post("/import", response_model=ImportResult)
async def import_menu(outlet_id: str, request: ImportRequest):
    """
    Import item and combo records into an outlet.

    Records are processed in order, each in isolation. Combo records are
    recognised by `is_combo: true` or `type: "combo"`.

    Options:
    - dry_run: compute every decision without writing
    - create_missing_categories: create categories referenced by name
    - on_duplicate: skip, update or create when (name, price) matches
    """
    try:
        _check_batch_size(len(request.records))
        service = get_menu_import_service()
        return service.import_menu(outlet_id, request.records, request.options)

    except Exception as e:
        return handle_error(e)


@router.post("/import/upload", response_model=ImportUploadResult)
async def import_menu_upload(
    outlet_id: str,
    file: UploadFile = File(...),
    dry_run: bool = Form(False),
    create_missing_categories: bool = Form(True),
    on_duplicate: DuplicateStrategy = Form(DuplicateStrategy.SKIP),
):
    """
    Import food items from an uploaded .xlsx or .csv menu sheet.

    Rows the parser rejects are listed in `parse_errors`; the remaining
    rows go through the regular import.
    """
    try:
        if not (file.filename or "").lower().endswith(SHEET_EXTENSIONS):
            return JSONResponse(
                status_code=400,
                content={
                    "error": {
                        "code": "INVALID_FILE_TYPE",
                        "message": "File must be a spreadsheet (.xlsx, .xls or .csv)"
                    }
                }
            )

        content = await file.read()
        parsed = parse_menu_sheet(BytesIO(content), file.filename)
        _check_batch_size(len(parsed.records))

        options = ImportOptions(
            dry_run=dry_run,
            create_missing_categories=create_missing_categories,
            on_duplicate=on_duplicate
        )
        service = get_menu_import_service()
        result = service.import_menu(outlet_id, parsed.records, options)

        logger.info(
            "menu_sheet_imported",
            outlet_id=outlet_id,
            filename=file.filename,
            parse_errors=len(parsed.errors),
            created=result.created
        )

        return ImportUploadResult(
            **result.model_dump(),
            parse_errors=[
                SheetRowError(row=e.row, field=e.field, error=e.error)
                for e in parsed.errors
            ]
        )

    except Exception as e:
        return handle_error(e)

"""
Menu export API routes.
"""

from datetime import date

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
import structlog

from models.menu_export import MenuSnapshot
from services.menu_export_service import get_menu_export_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/outlets/{outlet_id}/menu", tags=["Menu Export"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            }
        },
    )


# ===================
# EXPORT ROUTES
# ===================

@router.get("/export", response_model=MenuSnapshot)
async def export_menu(outlet_id: str):
    """
    Export the outlet's full menu.

    Categories and add-ons are referenced by name, so the snapshot can be
    re-imported into another outlet.
    """
    try:
        service = get_menu_export_service()
        return service.export_menu(outlet_id)

    except Exception as e:
        return handle_error(e)


@router.get("/export/xlsx")
async def export_menu_xlsx(outlet_id: str):
    """Download the outlet's menu as an Excel workbook."""
    try:
        service = get_menu_export_service()
        content = service.export_workbook(outlet_id)

        filename = f"MENU_{outlet_id}_{date.today().isoformat()}.xlsx"
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    except Exception as e:
        return handle_error(e)

"""
Cross-outlet menu sync API routes.

Both routes take the source outlet in the path and the targets in the body.
A sync always answers 200 with one outcome per target; only a missing
source outlet or an invalid request fails the whole call.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import structlog

from config import settings
from models.menu_sync import (
    SyncPreviewRequest,
    SyncPreviewResult,
    SyncRequest,
    SyncResult,
)
from services.menu_sync_service import get_menu_sync_service
from exceptions import AppError, BulkLimitError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/outlets/{outlet_id}/menu/sync", tags=["Menu Sync"])


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


def _check_targets(target_outlet_ids: list[str]) -> None:
    if len(target_outlet_ids) > settings.sync_max_targets:
        raise BulkLimitError(
            "SYNC_TOO_MANY_TARGETS", "target outlets", len(target_outlet_ids), settings.sync_max_targets
        )


# ===================
# SYNC ROUTES
# ===================

@router.post("/preview", response_model=SyncPreviewResult)
async def preview_sync(outlet_id: str, request: SyncPreviewRequest):
    """
    Preview a sync from this outlet to the target outlets.

    Read-only. Reports name collisions and estimated creates/updates per
    target for the given duplicate strategy and category handling.
    """
    try:
        _check_targets(request.target_outlet_ids)
        service = get_menu_sync_service()
        return service.preview(outlet_id, request.target_outlet_ids, request.options)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=SyncResult)
async def sync_menu(outlet_id: str, request: SyncRequest):
    """
    Copy this outlet's categories, add-ons and items to the target outlets.

    Each target reports its own status: success, partial or failed.
    Combos are not copied.
    """
    try:
        _check_targets(request.target_outlet_ids)
        service = get_menu_sync_service()
        return service.sync(outlet_id, request.target_outlet_ids, request.options)

    except Exception as e:
        return handle_error(e)

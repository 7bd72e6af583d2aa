"""
API route modules.

Each module defines routes for one menu operation.
"""

from routes.menu_import import router as menu_import_router
from routes.menu_export import router as menu_export_router
from routes.menu_sync import router as menu_sync_router

__all__ = [
    "menu_import_router",
    "menu_export_router",
    "menu_sync_router",
]

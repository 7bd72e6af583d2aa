"""
Business logic services.

Each service handles one part of the menu engine.
"""

from services.menu_repository import MenuRepository, get_menu_repository
from services.menu_identity import IdentityResolver, MenuIndex
from services.slug_service import SlugGenerator, unique_slug
from services.combo_pricing import ComboPricingCalculator, ComboPrice, price_combo
from services.menu_import_service import MenuImportService, get_menu_import_service
from services.menu_export_service import MenuExportService, get_menu_export_service
from services.menu_sync_service import MenuSyncService, get_menu_sync_service

__all__ = [
    "MenuRepository",
    "get_menu_repository",
    "IdentityResolver",
    "MenuIndex",
    "SlugGenerator",
    "unique_slug",
    "ComboPricingCalculator",
    "ComboPrice",
    "price_combo",
    "MenuImportService",
    "get_menu_import_service",
    "MenuExportService",
    "get_menu_export_service",
    "MenuSyncService",
    "get_menu_sync_service",
]

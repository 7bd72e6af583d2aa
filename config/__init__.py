"""
Configuration: settings and the document store client.
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    reset_connection,
    StoreConnectionError,
    MENU_TABLES,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "get_supabase_client",
    "check_connection",
    "reset_connection",
    "StoreConnectionError",
    "MENU_TABLES",
]

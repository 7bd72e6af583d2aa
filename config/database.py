"""
Document store client.

One Supabase client per process, shared by every MenuRepository that is
not handed its own client.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# Tables the health check counts
MENU_TABLES = ("outlets", "categories", "food_items", "addons", "combos")


class StoreConnectionError(Exception):
    """The document store could not be reached at startup."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get the shared Supabase client.

    Call get_supabase_client.cache_clear() (or reset_connection) to reconnect.

    Raises:
        StoreConnectionError: If the client cannot reach the outlets table
    """
    try:
        logger.info("store_connecting", url=settings.supabase_url[:30] + "...")

        client = create_client(settings.supabase_url, settings.store_key)
        client.table("outlets").select("id").limit(1).execute()

        logger.info(
            "store_connected",
            service_role=settings.supabase_service_key is not None
        )
        return client

    except Exception as e:
        logger.error(
            "store_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise StoreConnectionError(f"Failed to connect to Supabase: {e}") from e


def check_connection() -> dict:
    """
    Report store reachability with a row count per menu table.

    Returns:
        {"status": "healthy", "counts": {table: n}} or
        {"status": "unhealthy", "error": str}
    """
    try:
        client = get_supabase_client()
        counts = {
            table: client.table(table).select("id", count="exact").execute().count
            for table in MENU_TABLES
        }
        return {"status": "healthy", "counts": counts}

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}


def reset_connection():
    """Drop the cached client so the next call reconnects."""
    get_supabase_client.cache_clear()
    logger.info("store_connection_reset")

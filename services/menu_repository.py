"""
Menu entity repository.

Thin document-store adapter over Supabase tables. All menu entities are
scoped to an outlet through their ``outlet_id`` column. Rows are returned
as plain dicts; services decide which schema to parse them into.
"""

from typing import Any, Optional
import structlog

from config import get_supabase_client
from models.menu import EntityKind, Outlet
from exceptions import DatabaseError, OutletNotFoundError

logger = structlog.get_logger(__name__)


class MenuRepository:
    """
    CRUD and query access to categories, food items, add-ons and combos.

    Every failed store call is logged and raised as DatabaseError.
    """

    OUTLETS_TABLE = "outlets"

    def __init__(self, client=None):
        self.db = client if client is not None else get_supabase_client()

    # ===================
    # OUTLETS
    # ===================

    def get_outlet(self, outlet_id: str) -> Optional[Outlet]:
        """Get an outlet by id, or None if it doesn't exist."""
        logger.debug("getting_outlet", outlet_id=outlet_id)

        try:
            result = (
                self.db.table(self.OUTLETS_TABLE)
                .select("*")
                .eq("id", outlet_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_outlet_failed", outlet_id=outlet_id, error=str(e))
            raise DatabaseError("select", str(e), {"table": self.OUTLETS_TABLE})

        if not result.data:
            return None
        return Outlet(**result.data[0])

    def require_outlet(self, outlet_id: str) -> Outlet:
        """
        Get an outlet by id.

        Raises:
            OutletNotFoundError: If the outlet doesn't exist
        """
        outlet = self.get_outlet(outlet_id)
        if outlet is None:
            raise OutletNotFoundError(outlet_id)
        return outlet

    # ===================
    # READ OPERATIONS
    # ===================

    def find(
        self,
        outlet_id: str,
        kind: EntityKind,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[list[str]] = None
    ) -> list[dict]:
        """
        Find entities of one kind in an outlet.

        Args:
            outlet_id: Owning outlet
            kind: Entity kind (table)
            filters: Column equality filters; list values match any
            order_by: Columns to sort by, ascending

        Returns:
            List of rows
        """
        try:
            query = self.db.table(kind.value).select("*").eq("outlet_id", outlet_id)
            query = self._apply_filters(query, filters)
            for column in order_by or []:
                query = query.order(column)
            result = query.execute()
        except Exception as e:
            logger.error(
                "find_entities_failed",
                outlet_id=outlet_id,
                kind=kind.value,
                error=str(e)
            )
            raise DatabaseError("select", str(e), {"table": kind.value})

        logger.debug(
            "entities_found",
            outlet_id=outlet_id,
            kind=kind.value,
            count=len(result.data)
        )
        return list(result.data)

    def find_one(
        self,
        outlet_id: str,
        kind: EntityKind,
        filters: Optional[dict[str, Any]] = None
    ) -> Optional[dict]:
        """First entity matching the filters, or None."""
        try:
            query = self.db.table(kind.value).select("*").eq("outlet_id", outlet_id)
            query = self._apply_filters(query, filters)
            result = query.limit(1).execute()
        except Exception as e:
            logger.error(
                "find_one_entity_failed",
                outlet_id=outlet_id,
                kind=kind.value,
                error=str(e)
            )
            raise DatabaseError("select", str(e), {"table": kind.value})

        return result.data[0] if result.data else None

    def find_by_id(self, kind: EntityKind, entity_id: str) -> Optional[dict]:
        """Entity by id regardless of outlet, or None."""
        try:
            result = (
                self.db.table(kind.value)
                .select("*")
                .eq("id", entity_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(
                "find_entity_by_id_failed",
                kind=kind.value,
                entity_id=entity_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e), {"table": kind.value})

        return result.data[0] if result.data else None

    def count(
        self,
        outlet_id: str,
        kind: EntityKind,
        filters: Optional[dict[str, Any]] = None
    ) -> int:
        """Count entities of one kind in an outlet."""
        try:
            query = self.db.table(kind.value).select("id", count="exact").eq("outlet_id", outlet_id)
            query = self._apply_filters(query, filters)
            result = query.execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_entities_failed", outlet_id=outlet_id, kind=kind.value, error=str(e))
            raise DatabaseError("count", str(e), {"table": kind.value})

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, kind: EntityKind, fields: dict[str, Any]) -> dict:
        """
        Insert a new entity.

        Args:
            kind: Entity kind (table)
            fields: Column values, must include outlet_id

        Returns:
            Created row (with id)
        """
        try:
            result = self.db.table(kind.value).insert(fields).execute()
        except Exception as e:
            logger.error(
                "create_entity_failed",
                kind=kind.value,
                outlet_id=fields.get("outlet_id"),
                name=fields.get("name"),
                error=str(e)
            )
            raise DatabaseError("insert", str(e), {"table": kind.value})

        row = result.data[0]
        logger.info(
            "entity_created",
            kind=kind.value,
            entity_id=row.get("id"),
            outlet_id=row.get("outlet_id")
        )
        return row

    def update(self, kind: EntityKind, entity_id: str, fields: dict[str, Any]) -> dict:
        """
        Update an entity by id.

        Returns:
            Updated row
        """
        try:
            result = (
                self.db.table(kind.value)
                .update(fields)
                .eq("id", entity_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_entity_failed",
                kind=kind.value,
                entity_id=entity_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e), {"table": kind.value})

        if not result.data:
            raise DatabaseError("update", "no rows updated", {"table": kind.value, "id": entity_id})

        logger.info(
            "entity_updated",
            kind=kind.value,
            entity_id=entity_id,
            fields=list(fields.keys())
        )
        return result.data[0]

    def delete(self, kind: EntityKind, entity_id: str) -> bool:
        """Hard delete an entity by id."""
        try:
            self.db.table(kind.value).delete().eq("id", entity_id).execute()
        except Exception as e:
            logger.error(
                "delete_entity_failed",
                kind=kind.value,
                entity_id=entity_id,
                error=str(e)
            )
            raise DatabaseError("delete", str(e), {"table": kind.value})

        logger.info("entity_deleted", kind=kind.value, entity_id=entity_id)
        return True

    # ===================
    # HELPERS
    # ===================

    @staticmethod
    def _apply_filters(query, filters: Optional[dict[str, Any]]):
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                query = query.in_(column, list(value))
            elif value is None:
                query = query.is_(column, "null")
            else:
                query = query.eq(column, value)
        return query


# Singleton instance for convenience
_menu_repository: Optional[MenuRepository] = None

def get_menu_repository() -> MenuRepository:
    """Get or create MenuRepository instance."""
    global _menu_repository
    if _menu_repository is None:
        _menu_repository = MenuRepository()
    return _menu_repository

"""
Menu engine errors.

Every error carries a stable ``code``, an HTTP ``status_code`` and a
``details`` dict. Routes render them with ``to_dict()``; the bulk
services catch them at record, entity and target boundaries and turn
them into in-band failures instead.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base for all menu engine errors.

    Attributes:
        code: Stable machine-readable code (e.g. "OUTLET_NOT_FOUND")
        message: Human-readable message, also used as the in-band error text
        status_code: HTTP status when the error reaches a route
        details: Extra context for the caller
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Referenced resource does not exist (404)."""

    def __init__(self, resource: str, identifier: str, code: str, message: Optional[str] = None):
        super().__init__(
            code=code,
            message=message or f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Input rejected (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(code=code, message=message, status_code=422, details=details)


class DatabaseError(AppError):
    """A document store call failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# OUTLET ERRORS
# ===================

class OutletNotFoundError(NotFoundError):
    """Outlet not found. Aborts an import or export; fails one sync target."""

    def __init__(self, outlet_id: str):
        super().__init__("Outlet", outlet_id, code="OUTLET_NOT_FOUND")


# ===================
# MENU ENTITY ERRORS
# ===================

class CategoryNotFoundError(NotFoundError):
    """Named category is missing and auto-create is off."""

    def __init__(self, category: str):
        super().__init__(
            "Category",
            category,
            code="CATEGORY_NOT_FOUND",
            message=f"Category '{category}' not found"
        )


class InvalidReferenceError(ValidationError):
    """A referenced entity does not belong to the outlet."""

    def __init__(self, kind: str, reference_id: str, outlet_id: str):
        super().__init__(
            code="INVALID_REFERENCE",
            message=f"{kind} {reference_id} does not belong to outlet {outlet_id}",
            details={"kind": kind, "id": reference_id, "outlet_id": outlet_id}
        )


class ComboValidationError(ValidationError):
    """Combo payload is not valid for its type."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(code="COMBO_INVALID", message=message, details=details)


# ===================
# BULK OPERATION ERRORS
# ===================

class BulkLimitError(ValidationError):
    """A bulk request exceeds its configured size limit."""

    def __init__(self, code: str, what: str, count: int, limit: int):
        super().__init__(
            code=code,
            message=f"Too many {what}: {count} (max {limit})",
            details={what.replace(" ", "_"): count, "max": limit}
        )


class SyncTargetIsSourceError(ValidationError):
    """A sync target names the source outlet itself."""

    def __init__(self, outlet_id: str):
        super().__init__(
            code="SYNC_TARGET_IS_SOURCE",
            message="Target outlet is the source outlet",
            details={"outlet_id": outlet_id}
        )


# ===================
# MENU SHEET PARSER
# ===================

class MenuSheetParseError(ValidationError):
    """Menu spreadsheet could not be read."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(code="MENU_SHEET_PARSE_ERROR", message=message, details=details)

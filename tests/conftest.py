"""
Shared test fixtures.

Provides an in-memory Supabase client so services run their real query
chains against plain Python tables.
"""

import os
import sys
from pathlib import Path

# Settings are loaded at import time and require these
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import copy
import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Any, Generator, Optional
from uuid import uuid4


class InjectedFailure(RuntimeError):
    """Raised by the in-memory client when a failure rule matches."""


# ===================
# IN-MEMORY SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


class MockSupabaseQuery:
    """Chainable query builder evaluated against the client's tables."""

    def __init__(self, client: "MockSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: list[tuple[str, str, Any]] = []
        self._orders: list[tuple[str, bool]] = []
        self._limit: Optional[int] = None
        self._single = False
        self._count = False

    # Operations

    def select(self, *columns, count: Optional[str] = None):
        self._op = "select"
        self._count = count is not None
        return self

    def insert(self, data):
        self._op = "insert"
        self._payload = data
        return self

    def update(self, data):
        self._op = "update"
        self._payload = data
        return self

    def delete(self):
        self._op = "delete"
        return self

    # Filters

    def eq(self, column, value):
        self._filters.append(("eq", column, value))
        return self

    def neq(self, column, value):
        self._filters.append(("neq", column, value))
        return self

    def in_(self, column, values):
        self._filters.append(("in", column, list(values)))
        return self

    def is_(self, column, value):
        self._filters.append(("is", column, value))
        return self

    # Modifiers

    def order(self, column, desc: bool = False, **kwargs):
        self._orders.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def range(self, start, end):
        self._limit = end + 1
        return self

    def single(self):
        self._single = True
        return self

    # Evaluation

    def _matches(self, row: dict) -> bool:
        for op, column, value in self._filters:
            current = row.get(column)
            if op == "eq" and current != value:
                return False
            if op == "neq" and current == value:
                return False
            if op == "in" and current not in value:
                return False
            if op == "is" and value == "null" and current is not None:
                return False
        return True

    def _filter_value(self, column: str) -> Any:
        for op, col, value in self._filters:
            if op == "eq" and col == column:
                return value
        return None

    def _context(self, rows: list[dict]) -> dict:
        """Attributes failure rules are matched against."""
        payload = self._payload if isinstance(self._payload, dict) else {}
        outlet_id = self._filter_value("outlet_id") or payload.get("outlet_id")
        if outlet_id is None and self._table == "outlets":
            outlet_id = self._filter_value("id")
        if outlet_id is None and rows:
            outlet_id = rows[0].get("outlet_id")
        return {
            "table": self._table,
            "op": self._op,
            "outlet_id": outlet_id,
            "name": payload.get("name"),
        }

    def execute(self) -> MockSupabaseResponse:
        table = self._client.tables.setdefault(self._table, [])

        if self._op == "insert":
            self._client.check_failure(self._context([]))
            items = self._payload if isinstance(self._payload, list) else [self._payload]
            created = []
            for item in items:
                now = datetime.now(timezone.utc).isoformat()
                row = {"id": str(uuid4()), "created_at": now, "updated_at": now, **copy.deepcopy(item)}
                table.append(row)
                created.append(copy.deepcopy(row))
            return MockSupabaseResponse(created, len(created))

        matched = [row for row in table if self._matches(row)]
        self._client.check_failure(self._context(matched))

        if self._op == "update":
            updated = []
            for row in matched:
                row.update(copy.deepcopy(self._payload))
                row["updated_at"] = datetime.now(timezone.utc).isoformat()
                updated.append(copy.deepcopy(row))
            return MockSupabaseResponse(updated, len(updated))

        if self._op == "delete":
            self._client.tables[self._table] = [row for row in table if row not in matched]
            return MockSupabaseResponse([copy.deepcopy(r) for r in matched], len(matched))

        for column, desc in reversed(self._orders):
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)

        total = len(matched)
        if self._limit is not None:
            matched = matched[:self._limit]
        data = [copy.deepcopy(r) for r in matched]

        if self._single:
            return MockSupabaseResponse(data[0] if data else None, 1 if data else 0)
        return MockSupabaseResponse(data, total if self._count else None)


class MockSupabaseClient:
    """
    In-memory Supabase client.

    Tables are plain lists of dicts. Failure rules make matching calls raise
    InjectedFailure, e.g. every call touching one outlet or every insert
    into one table.
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self._failures: list[dict] = []
        self.calls = 0

    def set_table_data(self, table_name: str, data: list):
        """Replace the rows of a table."""
        self.tables[table_name] = [copy.deepcopy(row) for row in data]

    def rows(self, table_name: str, **filters) -> list[dict]:
        """Current rows of a table matching column equality filters."""
        return [
            row for row in self.tables.get(table_name, [])
            if all(row.get(k) == v for k, v in filters.items())
        ]

    def fail_when(self, **rule):
        """
        Make calls fail when every given attribute matches.

        Attributes: table, op (select/insert/update/delete), outlet_id, name.
        """
        self._failures.append(rule)

    def check_failure(self, context: dict):
        self.calls += 1
        for rule in self._failures:
            if all(context.get(key) == value for key, value in rule.items()):
                raise InjectedFailure(f"Injected failure on {context['table']} {context['op']}")

    def table(self, name: str) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create an in-memory Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("outlets", [OutletFactory.create(id="o1")])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with the in-memory one.

    Any repository created while the fixture is active uses the mock.
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.menu_repository.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def repository(mock_supabase):
    """MenuRepository backed by the in-memory client."""
    from services.menu_repository import MenuRepository

    return MenuRepository(client=mock_supabase)


@pytest.fixture
def seed(mock_supabase):
    """
    Insert rows into the in-memory tables.

    Usage:
        def test_something(seed):
            seed("categories", CategoryFactory.create(outlet_id="o1", name="Mains"))
    """
    def _seed(table: str, *rows: dict) -> list[dict]:
        mock_supabase.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))
        return list(rows)

    return _seed


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(repository):
    """
    Create FastAPI test client whose services use the in-memory client.

    Usage:
        def test_endpoint(test_client_with_mock_db, seed):
            seed("outlets", OutletFactory.create(id="o1"))
            response = test_client_with_mock_db.get("/api/outlets/o1/menu/export")
    """
    from fastapi.testclient import TestClient
    from main import app
    from services.menu_export_service import MenuExportService
    from services.menu_import_service import MenuImportService
    from services.menu_sync_service import MenuSyncService

    with patch("routes.menu_import.get_menu_import_service", return_value=MenuImportService(repository)):
        with patch("routes.menu_export.get_menu_export_service", return_value=MenuExportService(repository)):
            with patch("routes.menu_sync.get_menu_sync_service", return_value=MenuSyncService(repository)):
                yield TestClient(app)

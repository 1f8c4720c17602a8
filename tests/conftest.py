"""
Shared test fixtures.

The Supabase client is replaced by an in-memory store that understands
the subset of the PostgREST query builder the services use, including
filters, or-filters, ordering, paging and exact counts. It also enforces
the partial unique index on products.model_number among active rows.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import re
import pytest
from copy import deepcopy
from datetime import datetime, timedelta
from typing import Any, Callable, Generator, Optional
from unittest.mock import patch
from uuid import uuid4

from postgrest.exceptions import APIError

from models.actor import Actor, Role


# ===================
# IN-MEMORY SUPABASE
# ===================

# table -> (column, case-insensitive)
UNIQUE_ACTIVE_COLUMNS = {
    "products": ("model_number", False),
    "categories": ("name", True),
    "brands": ("name", True),
}

_BASE_TIME = datetime(2025, 1, 1, 8, 0, 0)


class FakeResponse:
    """Query response with data and optional exact count."""

    def __init__(self, data: Any = None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


def _equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) or isinstance(expected, bool):
        return actual == expected
    if isinstance(actual, (int, float)) or isinstance(expected, (int, float)):
        try:
            return float(actual) == float(expected)
        except (TypeError, ValueError):
            return False
    return actual == expected


def _compare(actual: Any, expected: Any, op: Callable[[float, float], bool]) -> bool:
    if actual is None:
        return False
    try:
        return op(float(actual), float(expected))
    except (TypeError, ValueError):
        return op(str(actual), str(expected))


def _ilike(actual: Any, pattern: str) -> bool:
    if actual is None:
        return False
    regex = "".join(
        ".*" if ch in "%*" else re.escape(ch)
        for ch in pattern
    )
    return re.fullmatch(regex, str(actual), flags=re.IGNORECASE | re.DOTALL) is not None


def _split_top_level(condition: str) -> list[str]:
    """Split an or-filter on commas that are not inside parentheses."""
    parts, depth, current = [], 0, ""
    for ch in condition:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += ch
    if current:
        parts.append(current)
    return parts


def _or_predicate(condition: str) -> Callable[[dict], bool]:
    checks = []
    for part in _split_top_level(condition):
        column, op, value = part.split(".", 2)
        if op == "ilike":
            checks.append(lambda row, c=column, v=value: _ilike(row.get(c), v))
        elif op == "eq":
            checks.append(lambda row, c=column, v=value: _equals(row.get(c), v))
        elif op == "in":
            options = [o.strip() for o in value.strip("()").split(",") if o.strip()]
            checks.append(lambda row, c=column, o=options: str(row.get(c)) in o)
        else:
            raise ValueError(f"Unsupported or-filter operator: {op}")
    return lambda row: any(check(row) for check in checks)


class FakeQuery:
    """Chainable query against one in-memory table."""

    def __init__(self, client: "FakeSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: list[Callable[[dict], bool]] = []
        self._orders: list[tuple[str, bool]] = []
        self._range: Optional[tuple[int, int]] = None
        self._limit: Optional[int] = None
        self._count_mode: Optional[str] = None
        self._single = False

    # Operations

    def select(self, *columns, count: Optional[str] = None):
        self._op = "select"
        self._count_mode = count
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
        self._filters.append(lambda row: _equals(row.get(column), value))
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: not _equals(row.get(column), value))
        return self

    def ilike(self, column, pattern):
        self._filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def gte(self, column, value):
        self._filters.append(lambda row: _compare(row.get(column), value, lambda a, b: a >= b))
        return self

    def lte(self, column, value):
        self._filters.append(lambda row: _compare(row.get(column), value, lambda a, b: a <= b))
        return self

    def in_(self, column, values):
        allowed = {str(v) for v in values}
        self._filters.append(lambda row: str(row.get(column)) in allowed)
        return self

    def or_(self, condition):
        self._filters.append(_or_predicate(condition))
        return self

    # Shaping

    def order(self, column, desc: bool = False):
        self._orders.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._single = True
        return self

    def execute(self) -> FakeResponse:
        self._client.calls.append((self._table, self._op))
        if self._table in self._client.failing_tables:
            raise APIError({
                "message": f"relation \"{self._table}\" is unavailable",
                "code": "XX000",
                "details": None,
                "hint": None,
            })

        if self._op == "insert":
            return FakeResponse(self._client._insert(self._table, self._payload))

        rows = [row for row in self._client.rows(self._table) if self._matches(row)]

        if self._op == "update":
            return FakeResponse(self._client._update(self._table, rows, self._payload))
        if self._op == "delete":
            self._client._delete(self._table, rows)
            return FakeResponse(deepcopy(rows))

        for column, desc in reversed(self._orders):
            rows.sort(
                key=lambda row: (row.get(column) is None, row.get(column)),
                reverse=desc
            )

        count = len(rows) if self._count_mode else None
        if self._range is not None:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]

        data = deepcopy(rows)
        if self._single:
            return FakeResponse(data[0] if data else None, count)
        return FakeResponse(data, count)

    def _matches(self, row: dict) -> bool:
        return all(check(row) for check in self._filters)


class FakeSupabaseClient:
    """
    In-memory stand-in for the Supabase client.

    Usage:
        def test_something(fake_db):
            fake_db.seed("categories", [{"name": "Submersible"}])
    """

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self._clock = 0
        self.calls: list[tuple[str, str]] = []
        self.failing_tables: set[str] = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> list[dict]:
        """Live rows of a table (not copies)."""
        return self._tables.setdefault(name, [])

    def seed(self, name: str, records: list[dict]) -> list[dict]:
        """Insert rows directly, bypassing the query builder."""
        return self._insert(name, records)

    def _now(self) -> str:
        self._clock += 1
        return (_BASE_TIME + timedelta(seconds=self._clock)).isoformat() + "Z"

    def _insert(self, name: str, payload) -> list[dict]:
        records = payload if isinstance(payload, list) else [payload]
        inserted = []
        for record in records:
            now = self._now()
            row = {
                "id": str(uuid4()),
                "active": True,
                "created_at": now,
                "updated_at": now,
                **deepcopy(record),
            }
            self._check_unique(name, row)
            self.rows(name).append(row)
            inserted.append(deepcopy(row))
        return inserted

    def _update(self, name: str, rows: list[dict], changes: dict) -> list[dict]:
        updated = []
        for row in rows:
            candidate = {**row, **deepcopy(changes), "updated_at": self._now()}
            self._check_unique(name, candidate)
            row.update(candidate)
            updated.append(deepcopy(row))
        return updated

    def _delete(self, name: str, rows: list[dict]) -> None:
        ids = {row["id"] for row in rows}
        self._tables[name] = [row for row in self.rows(name) if row["id"] not in ids]

    def _check_unique(self, name: str, row: dict) -> None:
        if name not in UNIQUE_ACTIVE_COLUMNS or not row.get("active"):
            return
        column, ignore_case = UNIQUE_ACTIVE_COLUMNS[name]

        def key(record: dict):
            value = record.get(column)
            return value.lower() if ignore_case and isinstance(value, str) else value

        for other in self.rows(name):
            if other["id"] != row["id"] and other.get("active") and key(other) == key(row):
                raise APIError({
                    "message": f'duplicate key value violates unique constraint "{name}_{column}_active_key"',
                    "code": "23505",
                    "details": f"Key ({column})=({row.get(column)}) already exists.",
                    "hint": None,
                })


# ===================
# FIXTURES
# ===================

@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator:
    """Each test builds fresh services against its own store."""
    import services.product_service as product_module
    import services.reference_service as reference_module
    import services.bulk_upload_service as bulk_module
    import services.export_service as export_module

    def reset():
        product_module._product_service = None
        reference_module._category_service = None
        reference_module._brand_service = None
        bulk_module._bulk_upload_service = None
        export_module._export_service = None

    reset()
    yield
    reset()


@pytest.fixture
def fake_db() -> FakeSupabaseClient:
    """Empty in-memory store."""
    return FakeSupabaseClient()


@pytest.fixture
def mock_db(fake_db) -> Generator:
    """
    Patch the database client with the in-memory store.

    Usage:
        def test_something(mock_db):
            mock_db.seed("products", [...])
            # Now any code using get_supabase_client() gets the fake
    """
    with patch("config.database.get_supabase_client", return_value=fake_db):
        with patch("services.reference_service.get_supabase_client", return_value=fake_db):
            with patch("services.product_service.get_supabase_client", return_value=fake_db):
                yield fake_db


@pytest.fixture
def catalog(mock_db) -> dict:
    """
    Seed categories and brands.

    Returns:
        {"categories": {name: id}, "brands": {name: id}}
    """
    categories = mock_db.seed("categories", [
        {"name": "Submersible", "description": "Submersible category for Deep Tec products"},
        {"name": "Centrifugal", "description": "Centrifugal category for Deep Tec products"},
    ])
    brands = mock_db.seed("brands", [
        {"name": "Pentax", "description": "Pentax brand products"},
        {"name": "Deep Tec", "description": "Deep Tec brand products"},
    ])
    return {
        "categories": {c["name"]: c["id"] for c in categories},
        "brands": {b["name"]: b["id"] for b in brands},
    }


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=Role.ADMIN)


@pytest.fixture
def project_user() -> Actor:
    return Actor(id="project-1", role=Role.PROJECT_USER)


@pytest.fixture
def employee() -> Actor:
    return Actor(id="employee-1", role=Role.EMPLOYEE)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    FastAPI test client backed by the in-memory store.

    Usage:
        def test_endpoint(test_client_with_mock_db, admin):
            response = test_client_with_mock_db.get(
                "/api/products", headers=auth_headers(admin)
            )
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)

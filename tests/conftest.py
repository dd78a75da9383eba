"""
Shared test fixtures.

FakeAssetStore is an in-memory AssetStore that honours filters, keyset
cursors and the serial batch limit, and lets tests hold or fail individual
calls. MockAsyncQuery mimics the Supabase async query builder.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time; tests never reach a real project
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import asyncio
from typing import Callable, Optional

import pytest

from models.asset import AssetRecord, AssetQueryFilter, AssetQueryResult
from exceptions import BatchSizeExceededError, RemoteQueryError
from services.asset_store import AssetStore
from services.scope_classifier import get_scope_classifier
from tests.factories import AssetFactory


# ===================
# FAKE ASSET STORE
# ===================

class FakeAssetStore(AssetStore):
    """
    In-memory asset store.

    Usage:
        store = FakeAssetStore([AssetFactory.build(serial="111", allocation_scope="BranchA")])
        store.fail_on_call(2)            # second query raises RemoteQueryError
        gate = store.hold_call(1)        # first query waits until gate.set()
    """

    def __init__(
        self,
        records: Optional[list[AssetRecord]] = None,
        max_batch_size: int = 30,
        authoritative: bool = False,
    ):
        self.records = list(records or [])
        self.max_batch_size = max_batch_size
        self.authoritative = authoritative
        self.calls: list[dict] = []
        self._failing_calls: set[int] = set()
        self._fail_when: Optional[Callable[[AssetQueryFilter], bool]] = None
        self._gates: dict[int, asyncio.Event] = {}

    def fail_on_call(self, call_number: int) -> None:
        self._failing_calls.add(call_number)

    def fail_when(self, predicate: Callable[[AssetQueryFilter], bool]) -> None:
        self._fail_when = predicate

    def hold_call(self, call_number: int) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[call_number] = gate
        return gate

    @property
    def serial_lookups(self) -> list[list[str]]:
        """serial_in lists received, in call order."""
        return [c["filters"].serial_in for c in self.calls if c["filters"].serial_in is not None]

    @staticmethod
    def _matches(record: AssetRecord, filters: AssetQueryFilter) -> bool:
        if filters.scope and record.allocation_scope != filters.scope:
            return False
        if filters.serial_in is not None and record.serial not in filters.serial_in:
            return False
        if filters.serial_prefix and not record.serial.startswith(filters.serial_prefix):
            return False
        for field, values in filters.field_in.items():
            value = getattr(record, field)
            if hasattr(value, "value"):
                value = value.value
            if value not in values:
                return False
        if filters.incomplete_only and record.serial_n:
            return False
        if filters.service_order_only and not get_scope_classifier().is_service_order(record.allocation_scope):
            return False
        return True

    async def query_assets(
        self,
        filters: AssetQueryFilter,
        page_size: int,
        cursor: Optional[str] = None,
    ) -> AssetQueryResult:
        self.calls.append({"filters": filters, "page_size": page_size, "cursor": cursor})
        call_number = len(self.calls)

        gate = self._gates.get(call_number)
        if gate is not None:
            await gate.wait()

        if call_number in self._failing_calls or (self._fail_when and self._fail_when(filters)):
            raise RemoteQueryError("connection reset", details={"call": call_number})

        if filters.serial_in is not None and len(filters.serial_in) > self.max_batch_size:
            raise BatchSizeExceededError(len(filters.serial_in), self.max_batch_size)

        matches = sorted(
            (r for r in self.records if self._matches(r, filters)),
            key=lambda r: r.id
        )
        if cursor:
            matches = [r for r in matches if r.id > cursor]

        page = matches[:page_size]
        return AssetQueryResult(
            records=page,
            next_cursor=page[-1].id if page else None,
            has_more=len(matches) > page_size if self.authoritative else None
        )


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockAsyncQuery:
    """
    Mock async Supabase query builder with chainable methods.

    Every builder call is recorded in .calls as (method, args).
    """

    def __init__(self, data: list = None, error: Exception = None):
        self._data = data or []
        self._error = error
        self.calls: list[tuple] = []

    def _record(self, method: str, *args):
        self.calls.append((method, args))
        return self

    def select(self, *args, **kwargs):
        return self._record("select", *args)

    def eq(self, column, value):
        return self._record("eq", column, value)

    def in_(self, column, values):
        return self._record("in_", column, values)

    def gt(self, column, value):
        return self._record("gt", column, value)

    def gte(self, column, value):
        return self._record("gte", column, value)

    def lte(self, column, value):
        return self._record("lte", column, value)

    def filter(self, column, operator, criteria):
        return self._record("filter", column, operator, criteria)

    def or_(self, filters):
        return self._record("or_", filters)

    def order(self, column, **kwargs):
        return self._record("order", column)

    def limit(self, count):
        return self._record("limit", count)

    def called(self, method: str) -> list[tuple]:
        """Args of every call to method."""
        return [args for name, args in self.calls if name == method]

    async def execute(self) -> MockSupabaseResponse:
        if self._error is not None:
            raise self._error
        return MockSupabaseResponse(data=self._data)


class MockSupabaseClient:
    """Mock async Supabase client."""

    def __init__(self):
        self._tables: dict[str, dict] = {}
        self.queries: list[MockAsyncQuery] = []

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = {"data": data, "error": None}

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table fail."""
        self._tables[table_name] = {"data": [], "error": error}

    def table(self, name: str) -> MockAsyncQuery:
        config = self._tables.get(name, {"data": [], "error": None})
        query = MockAsyncQuery(list(config["data"]), config["error"])
        self.queries.append(query)
        return query

    @property
    def last_query(self) -> MockAsyncQuery:
        return self.queries[-1]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("assets", [{"id": "1", "serial": "111", ...}])
    """
    return MockSupabaseClient()


@pytest.fixture
def branch_store() -> FakeAssetStore:
    """
    Store used by the end-to-end reconciliation scenario.

    111@BranchA, 222@BranchB, 444@BranchA
    """
    return FakeAssetStore([
        AssetFactory.build(id="asset-0001", serial="111", allocation_scope="BranchA"),
        AssetFactory.build(id="asset-0002", serial="222", allocation_scope="BranchB"),
        AssetFactory.build(id="asset-0003", serial="444", allocation_scope="BranchA"),
    ])


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/assets")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)

"""
Pytest fixtures and test configuration for memoboard tests.
"""

import asyncio
import os
import re
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

# For unit tests, set mock values ONLY if not running integration tests
if not os.environ.get("RUN_INTEGRATION"):
    os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
    os.environ.setdefault("SUPABASE_PUBLISHABLE_KEY", "test-publishable-key")
    os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
else:
    # For integration tests, load from .env
    from pathlib import Path

    from dotenv import load_dotenv

    if not os.environ.get("CONFIRM_INTEGRATION_CREDENTIALS"):
        print(
            "\nIntegration tests delete every row in the memos table.\n"
            "Set CONFIRM_INTEGRATION_CREDENTIALS=yes to proceed.\n",
            file=sys.stderr,
        )
        pytest.exit(
            "Integration tests require CONFIRM_INTEGRATION_CREDENTIALS=yes",
            returncode=1,
        )
    load_dotenv(Path(__file__).parent.parent / ".env", override=True)

from postgrest.exceptions import APIError  # noqa: E402

from memoboard.store import MemoStore  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)

# field.ilike.value, where value is bare or double-quoted with backslash escapes
_ILIKE_CLAUSE = re.compile(r'(\w+)\.ilike\.("(?:[^"\\]|\\.)*"|[^,]*)')
_BACKSLASH_ESCAPE = re.compile(r"\\(.)")


def api_error(code: str = "42501", message: str = "permission denied") -> APIError:
    """Build a PostgREST APIError like the client raises."""
    return APIError({"message": message, "code": code, "hint": None, "details": None})


class FakeResponse:
    """Mock PostgREST execute() result."""

    def __init__(self, data: Any = None):
        self.data = data


class FakeQuery:
    """In-memory stand-in for the async PostgREST request builder.

    Records each call on the owning FakeSupabase so tests can assert on the
    exact query shape.
    """

    def __init__(self, client: "FakeSupabase", table_name: str):
        self._client = client
        self._table = table_name
        self._action = "select"
        self._payload: Optional[Dict[str, Any]] = None
        self._filters: List = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._single = False

    # --- actions ---

    def select(self, fields: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self._action = "select"
        self._client.calls.append(("select", self._table, fields))
        return self

    def insert(self, data: Dict[str, Any]) -> "FakeQuery":
        self._action = "insert"
        self._payload = dict(data)
        self._client.calls.append(("insert", self._table, dict(data)))
        return self

    def update(self, data: Dict[str, Any]) -> "FakeQuery":
        self._action = "update"
        self._payload = dict(data)
        self._client.calls.append(("update", self._table, dict(data)))
        return self

    def delete(self) -> "FakeQuery":
        self._action = "delete"
        self._client.calls.append(("delete", self._table))
        return self

    # --- filters ---

    def eq(self, field: str, value: Any) -> "FakeQuery":
        self._client.calls.append(("eq", field, value))
        self._filters.append(lambda row: row.get(field) == value)
        return self

    def neq(self, field: str, value: Any) -> "FakeQuery":
        self._client.calls.append(("neq", field, value))
        self._filters.append(lambda row: row.get(field) != value)
        return self

    def or_(self, filters: str) -> "FakeQuery":
        self._client.calls.append(("or", filters))
        clauses = []
        for match in _ILIKE_CLAUSE.finditer(filters):
            field, value = match.group(1), match.group(2)
            if value.startswith('"'):
                value = _BACKSLASH_ESCAPE.sub(r"\1", value[1:-1])
            assert value.startswith("%") and value.endswith("%")
            # LIKE escapes
            needle = _BACKSLASH_ESCAPE.sub(r"\1", value[1:-1])
            clauses.append((field, needle.lower()))
        assert clauses

        def matches(row):
            return any(needle in str(row.get(field) or "").lower() for field, needle in clauses)

        self._filters.append(matches)
        return self

    def order(self, field: str, desc: bool = False) -> "FakeQuery":
        self._client.calls.append(("order", field, desc))
        self._order = (field, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def single(self) -> "FakeQuery":
        self._single = True
        return self

    # --- execution ---

    async def execute(self) -> FakeResponse:
        if self._client.gates:
            # Hold the response until the test releases it
            await self._client.gates.pop(0).wait()

        if self._client.fail_with is not None:
            raise self._client.fail_with

        rows = self._client.tables.setdefault(self._table, [])

        if self._action == "insert":
            row = self._client.new_row(self._payload)
            rows.append(row)
            return FakeResponse([dict(row)])

        matched = [row for row in rows if all(f(row) for f in self._filters)]

        if self._action == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResponse([dict(row) for row in matched])

        if self._action == "delete":
            self._client.tables[self._table] = [row for row in rows if row not in matched]
            return FakeResponse([dict(row) for row in matched])

        if self._order:
            field, desc = self._order
            matched.sort(key=lambda row: row.get(field) or "", reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        if self._single:
            if len(matched) != 1:
                raise api_error("PGRST116", "JSON object requested, multiple (or no) rows returned")
            return FakeResponse(dict(matched[0]))
        return FakeResponse([dict(row) for row in matched])


class FakePostgrest:
    """Stand-in for the client's PostgREST sub-client session."""

    def __init__(self):
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


class FakeSupabase:
    """Mock async Supabase client backed by in-memory tables.

    Inserted rows get a uuid id and one-second-spaced timestamps so creation
    order is unambiguous.

    Each asyncio.Event appended to ``gates`` holds back the next execute()
    call until it is set, so tests can control the order responses arrive in.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {"memos": []}
        self.calls: List = []
        self.fail_with: Optional[Exception] = None
        self.gates: List[asyncio.Event] = []
        self.postgrest = FakePostgrest()
        self._tick = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def new_row(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._tick += 1
        stamp = (BASE_TIME + timedelta(seconds=self._tick)).isoformat()
        row = {"id": str(uuid.uuid4()), "created_at": stamp, "updated_at": stamp, "tags": None}
        row.update(payload)
        return row

    def seed(self, title: str, content: str = "", category: str = "other", tags=None) -> Dict[str, Any]:
        """Insert a row directly, bypassing call tracking."""
        row = self.new_row(
            {"title": title, "content": content, "category": category, "tags": tags}
        )
        self.tables["memos"].append(row)
        return row


@pytest.fixture
def fake_db():
    """Empty fake Supabase client."""
    return FakeSupabase()


@pytest.fixture
def seeded_db(fake_db):
    """Fake client with three memos (oldest first)."""
    fake_db.seed("Trip Plan", "Flights and hotel for Lisbon", "personal", ["travel"])
    fake_db.seed("Work Notes", "Q3 budget review", "work", ["budget", "q3"])
    fake_db.seed("Reading list", "Designing Data-Intensive Applications", "study")
    return fake_db


@pytest.fixture
def clock():
    """Controllable clock for updated_at, starting one hour after BASE_TIME."""

    class Clock:
        def __init__(self):
            self.now = BASE_TIME + timedelta(hours=1)

        def __call__(self):
            return self.now

        def advance(self, **kwargs):
            self.now += timedelta(**kwargs)

    return Clock()


@pytest.fixture
def store(fake_db, clock):
    """MemoStore over the fake client (not yet initialized)."""
    return MemoStore(fake_db, clock=clock)

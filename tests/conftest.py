"""
Test configuration file for pytest
Contains fixtures for a fully wired app with a controllable clock and an
in-memory stand-in for the Supabase table API.
"""
import os
import itertools
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List

# Must be set before app.core.config is imported anywhere
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.core.config import Settings
from app.core.database import Database
from app.core.limiter import InMemoryRateLimiter
from main import create_app

JWT_SECRET = os.environ["SUPABASE_JWT_SECRET"]
START_MS = 1_700_000_000_000.0


class FakeClock:
    """Wall clock in epoch milliseconds that only moves when told to."""

    def __init__(self, start_ms: float = START_MS):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


# ---------------------------------------------------------
# Fake Supabase
# ---------------------------------------------------------

class FakeQuery:
    def __init__(self, rows: List[Dict[str, Any]], table: str, ids):
        self._rows = rows
        self._table = table
        self._ids = ids
        self._filters: List[tuple] = []
        self._op = "select"
        self._payload: Dict[str, Any] = {}
        self._limit = None

    def select(self, *_columns, **_kwargs):
        self._op = "select"
        return self

    def insert(self, payload: Dict[str, Any]):
        self._op = "insert"
        self._payload = dict(payload)
        return self

    def update(self, payload: Dict[str, Any]):
        self._op = "update"
        self._payload = dict(payload)
        return self

    def eq(self, column: str, value: Any):
        self._filters.append((column, value))
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def _matches(self, row):
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self):
        if self._op == "insert":
            row = dict(self._payload)
            row.setdefault("id", next(self._ids))
            row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
            self._rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        matched = [row for row in self._rows if self._matches(row)]
        if self._op == "update":
            for row in matched:
                row.update(self._payload)
        if self._limit is not None:
            matched = matched[: self._limit]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self._ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.tables.setdefault(name, []), name, self._ids)


# ---------------------------------------------------------
# Fixtures
# ---------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    rate_limiter = InMemoryRateLimiter(sweep_interval_seconds=300, clock=clock)
    yield rate_limiter
    rate_limiter.destroy()


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def test_settings():
    return Settings(
        SUPABASE_JWT_SECRET=JWT_SECRET,
        RATE_LIMIT_TRUST_FORWARDED_FOR=True,
        RATE_LIMIT_GENERAL_MAX_REQUESTS=1000,
    )


@pytest.fixture
def make_client(limiter, supabase):
    """Builds a TestClient for the given settings, sharing the fake clock limiter."""

    def _make(settings: Settings) -> TestClient:
        app = create_app(
            settings=settings,
            rate_limiter=limiter,
            database=Database(settings, client=supabase),
        )
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client, test_settings):
    return make_client(test_settings)


def make_token(
    sub: str,
    role: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
    secret: str = JWT_SECRET,
) -> str:
    claims = {
        "sub": sub,
        "role": role,
        "email": f"{sub}@example.com",
        "aud": "authenticated",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(sub: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub)}"}

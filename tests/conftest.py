import importlib
import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import pytest

# Ensure apps/api is on path for imports inside the API package (e.g., `casedash.main`).
ROOT = Path(__file__).resolve().parents[1]
API_PATH = ROOT / "apps" / "api"
if str(API_PATH) not in sys.path:
    sys.path.insert(0, str(API_PATH))

TEST_SECRET = "x" * 32


class DummyPool:
    """Pool stub for router tests: repositories are monkeypatched, so touching it is a bug."""

    def connection(self):
        raise AssertionError("Connection should not be used in mocked router tests")


class FakeCursor:
    def __init__(self, pool):
        self.pool = pool
        self._rows = []
        self.rowcount = 0

    async def execute(self, query, params=None):
        sql = " ".join(str(query).split())
        self.pool.executed.append((sql, params))
        result = self.pool.respond(sql, params)
        self._rows = list(result or [])
        self.rowcount = len(self._rows)

    async def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    async def fetchall(self):
        rows, self._rows = self._rows, []
        return rows

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeConnection:
    def __init__(self, pool):
        self.pool = pool

    def cursor(self):
        return FakeCursor(self.pool)

    async def commit(self):
        self.pool.commits += 1
        if self.pool.on_commit:
            self.pool.on_commit()

    async def rollback(self):
        self.pool.rollbacks += 1
        if self.pool.on_rollback:
            self.pool.on_rollback()

    async def __aenter__(self):
        self.pool.acquired += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.pool.released += 1
        return False


class FakeAsyncPool:
    """
    Scripted stand-in for psycopg_pool.AsyncConnectionPool.

    ``responses`` is a list of (sql_fragment, rows_or_callable). The first
    fragment found in the whitespace-normalised statement decides the rows;
    callables receive the bound params and may raise to simulate store errors.
    """

    def __init__(self, responses=None, on_commit=None, on_rollback=None):
        self.responses = list(responses or [])
        self.on_commit = on_commit
        self.on_rollback = on_rollback
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.acquired = 0
        self.released = 0

    def respond(self, sql, params):
        for fragment, result in self.responses:
            if fragment in sql:
                return result(params) if callable(result) else result
        return []

    def connection(self):
        return FakeConnection(self)


@pytest.fixture
def fake_pool_cls():
    return FakeAsyncPool


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    from casedash.infrastructure.security import rate_limit

    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def settings(tmp_path):
    from casedash.config import Settings

    return Settings(
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        static_dir=str(tmp_path / "public"),
        login_rate_limit=1000,
    )


@pytest.fixture
def app_modules(monkeypatch, settings):
    """
    Build the app with a dummy pool so startup doesn't require a database.
    Returns modules for monkeypatching in tests.
    """
    app_module = importlib.import_module("casedash.main")
    db = importlib.import_module("casedash.infrastructure.db.connection")

    async def _noop(*args, **kwargs):
        return None

    monkeypatch.setattr(db, "init_pool", _noop)
    monkeypatch.setattr(db, "close_pool", _noop)

    app = app_module.create_app(settings)
    pool = DummyPool()
    app.dependency_overrides[db.get_pool] = lambda: pool

    return {
        "app": app,
        "pool": pool,
        "settings": settings,
        "user_repository": importlib.import_module("casedash.infrastructure.db.user_repository"),
        "client_repository": importlib.import_module("casedash.infrastructure.db.client_repository"),
        "lookup_repository": importlib.import_module("casedash.infrastructure.db.lookup_repository"),
        "kpi_repository": importlib.import_module("casedash.infrastructure.db.kpi_repository"),
        "service_repository": importlib.import_module("casedash.infrastructure.db.service_repository"),
        "system_repository": importlib.import_module("casedash.infrastructure.db.system_repository"),
    }


@pytest.fixture
def client(app_modules):
    from fastapi.testclient import TestClient

    return TestClient(app_modules["app"])


@pytest.fixture
def make_token():
    from casedash.core.domain.auth import TokenClaims
    from casedash.infrastructure.security import auth as security

    def _make(
        roles,
        user_id: int = 7,
        email: str = "worker@example.org",
        full_name: str = "Case Worker",
        secret: str = TEST_SECRET,
        ttl: Optional[timedelta] = None,
    ) -> str:
        claims = TokenClaims(user_id=user_id, email=email, full_name=full_name, roles=list(roles))
        return security.create_access_token(claims, secret, ttl=ttl)

    return _make


@pytest.fixture
def auth_header(make_token):
    def _header(*roles, **kwargs):
        return {"Authorization": f"Bearer {make_token(roles, **kwargs)}"}

    return _header

"""
Pytest configuration and shared fixtures.

The ``store`` fixture is an in-memory DuckDB store loaded with
``tests.seed_data``.
"""
import asyncio

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from core.duckdb_store import DuckDBStore
from core.cache import cache
from tests.seed_data import TODAY, seed


async def build_store() -> DuckDBStore:
    store = DuckDBStore(":memory:")
    await store.connect()
    seed(store._connection)
    return store


@pytest_asyncio.fixture
async def store():
    """Seeded in-memory DuckDB store."""
    store = await build_store()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def empty_store():
    """In-memory store with the schema but no rows."""
    store = DuckDBStore(":memory:")
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def client(monkeypatch):
    """
    TestClient over the app with the seeded store and a fixed ``today``.

    Startup and shutdown run against the same store, so nothing touches the
    configured database file or Redis.
    """
    from web.main import app
    from web.routes.api._deps import get_store, get_today, limiter

    seeded = DuckDBStore(":memory:")

    async def seeded_store():
        if not seeded.is_connected:
            await seeded.connect()
            seed(seeded._connection)
        return seeded

    async def keep_open():
        return None

    monkeypatch.setattr("web.main.get_store", seeded_store)
    monkeypatch.setattr("web.main.close_store", keep_open)
    monkeypatch.setattr(cache, "enabled", False)
    monkeypatch.setattr(limiter, "enabled", False)
    app.dependency_overrides[get_store] = seeded_store
    app.dependency_overrides[get_today] = lambda: TODAY

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    asyncio.run(seeded.close())

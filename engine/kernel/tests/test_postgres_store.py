"""
Tests for PostgresDocumentStore adapter.

Requires a running Postgres instance with the documents table
(alembic upgrade head).
"""

import asyncio
import os
import uuid

import asyncpg
import pytest

from engine.kernel.assembly import ensure_profile, record_view
from engine.kernel.errors import WriteFailed
from engine.kernel.postgres_store import PostgresDocumentStore


@pytest.fixture
async def db_pool():
    """Create a connection pool for tests."""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set")

    pool = await asyncpg.create_pool(database_url)
    yield pool
    await pool.execute("DELETE FROM documents WHERE collection LIKE 'test-%'")
    await pool.close()


@pytest.fixture
async def store(db_pool):
    return PostgresDocumentStore(db_pool)


@pytest.fixture
def collection():
    return f"test-{uuid.uuid4().hex[:8]}"


class TestPostgresDocumentStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self, store, collection):
        doc = {"display_name": "Neon Echo", "songs": [{"id": "1", "title": "Static"}]}
        await store.set(collection, "neon-echo", doc)
        assert await store.get(collection, "neon-echo") == doc

    @pytest.mark.asyncio
    async def test_get_missing(self, store, collection):
        assert await store.get(collection, "nobody") is None

    @pytest.mark.asyncio
    async def test_set_replaces(self, store, collection):
        await store.set(collection, "x", {"a": 1, "b": 2})
        await store.set(collection, "x", {"a": 3})
        assert await store.get(collection, "x") == {"a": 3}

    @pytest.mark.asyncio
    async def test_increment_nested(self, store, collection):
        await store.set(collection, "x", {"views": 1})
        await store.increment(collection, "x", {"views": 2, "daily_views.2024-05-01": 1})
        doc = await store.get(collection, "x")
        assert doc["views"] == 3
        assert doc["daily_views"] == {"2024-05-01": 1}

    @pytest.mark.asyncio
    async def test_increment_missing(self, store, collection):
        with pytest.raises(WriteFailed):
            await store.increment(collection, "nobody", {"views": 1})

    @pytest.mark.asyncio
    async def test_concurrent_increments(self, store, collection):
        await store.set(collection, "x", {"views": 0})
        await asyncio.gather(*(store.increment(collection, "x", {"views": 1}) for _ in range(10)))
        assert (await store.get(collection, "x"))["views"] == 10


class TestBootstrapOnPostgres:
    @pytest.mark.asyncio
    async def test_bootstrap_then_view(self, store):
        profile_id = f"test-artist-{uuid.uuid4().hex[:8]}"
        try:
            doc = await ensure_profile(store, profile_id)
            assert doc["views"] == 0
            assert await record_view(store, "bands", profile_id) is True
            assert (await store.get("bands", profile_id))["views"] == 1
        finally:
            await store.pool.execute("DELETE FROM documents WHERE collection = 'bands' AND id = $1", profile_id)

"""
Tests for PostgresTodoStore and the pool helpers.

NOTE: The database tests require a running PostgreSQL database with the DATABASE_URL environment variable set.
Run `alembic upgrade head` before running these tests.
"""

from __future__ import annotations

import os
from datetime import date
from uuid import uuid4

import pytest
import pytest_asyncio

from backend import db
from backend.stores import PostgresTodoStore, TodoNotFound

DATABASE_URL = os.environ.get("DATABASE_URL", "")

needs_db = pytest.mark.skipif(not DATABASE_URL, reason="DATABASE_URL not set")


@pytest_asyncio.fixture
async def store():
    store = await PostgresTodoStore.connect(DATABASE_URL)
    yield store
    await store.close()


@pytest_asyncio.fixture
async def email(store):
    """A fresh owner; their rows are removed afterwards."""
    email = f"test-{uuid4()}@example.com"
    yield email
    async with db.transaction(store.pool) as conn:
        await conn.execute("DELETE FROM todos WHERE created_by = $1", email)


# ── without a database ──────────────────────────────────────────────────────


async def test_transaction_requires_pool():
    with pytest.raises(RuntimeError):
        async with db.transaction(None):
            pass


async def test_non_numeric_id_is_not_found():
    """Ids are integers; anything else cannot match a row."""
    store = PostgresTodoStore()
    with pytest.raises(TodoNotFound):
        await store.toggle("ada@example.com", "-Nx0001")
    with pytest.raises(TodoNotFound):
        await store.delete("ada@example.com", "abc")


async def test_close_without_pool():
    store = PostgresTodoStore(name="neon")
    await store.close()
    assert store.pool is None


# ── against DATABASE_URL ────────────────────────────────────────────────────


@needs_db
class TestPostgresStore:
    async def test_create_and_list(self, store, email):
        later = await store.create(email, "Later", date(2099, 1, 2))
        sooner = await store.create(email, "Sooner", date(2099, 1, 1))
        todos = await store.list(email)
        assert [t.id for t in todos] == [sooner.id, later.id]
        assert todos[0].done is False

    async def test_toggle_and_hide_done(self, store, email):
        todo = await store.create(email, "Run", date(2099, 1, 1))
        updated = await store.toggle(email, todo.id)
        assert updated.done is True
        assert await store.list(email, hide_done=True) == []

    async def test_delete(self, store, email):
        todo = await store.create(email, "Run", date(2099, 1, 1))
        deleted = await store.delete(email, todo.id)
        assert deleted.id == todo.id
        assert await store.list(email) == []

    async def test_scoped_to_owner(self, store, email):
        todo = await store.create(email, "Mine", date(2099, 1, 1))
        with pytest.raises(TodoNotFound):
            await store.toggle(f"other-{email}", todo.id)
        assert await store.list(f"other-{email}") == []

    async def test_missing_id(self, store, email):
        with pytest.raises(TodoNotFound):
            await store.delete(email, "2147483000")

    async def test_writes_notify(self, store, email):
        received = []

        async def listener(todos):
            received.append(len(todos))

        dispose = store.subscribe(email, listener)
        await store.create(email, "One", date(2099, 1, 1))
        dispose()
        assert received == [1]

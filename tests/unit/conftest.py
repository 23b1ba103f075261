"""Unit-specific fixtures (no I/O beyond in-memory SQLite)."""

from __future__ import annotations

import aiosqlite
import pytest

from plugincatalog.store import SqliteSnapshotStore


@pytest.fixture()
async def sqlite_store():
    """In-memory SQLite snapshot store for unit tests."""
    async with aiosqlite.connect(":memory:") as db:
        store = SqliteSnapshotStore(db)
        await store.init_db()
        yield store

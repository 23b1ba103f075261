"""Snapshot persistence.

All SQLite operations catch ``aiosqlite.Error`` internally and degrade
gracefully: read failures return ``None`` (treated as a cache miss), write
failures are logged and ignored (the in-memory snapshot is still served).
A stored row that no longer validates against the current models is also
treated as a miss. Infrastructure errors never cross the store boundary.
"""

from __future__ import annotations

from typing import Protocol

import aiosqlite
import structlog
from pydantic import ValidationError

from plugincatalog.models.cache import CatalogSnapshot

log = structlog.get_logger()

_CREATE_CATALOG_TABLE = """
CREATE TABLE IF NOT EXISTS catalog_cache (
    catalog_key TEXT PRIMARY KEY,
    content     TEXT NOT NULL,
    fetched_at  TEXT NOT NULL,
    expires_at  TEXT NOT NULL
)
"""


class SnapshotStore(Protocol):
    async def load(self, catalog_key: str) -> CatalogSnapshot | None: ...

    async def save(self, snapshot: CatalogSnapshot) -> None: ...

    async def delete(self, catalog_key: str) -> None: ...


class MemorySnapshotStore:
    """Process-lifetime store for hosts without durable storage."""

    def __init__(self) -> None:
        self._snapshots: dict[str, CatalogSnapshot] = {}

    async def load(self, catalog_key: str) -> CatalogSnapshot | None:
        return self._snapshots.get(catalog_key)

    async def save(self, snapshot: CatalogSnapshot) -> None:
        self._snapshots[snapshot.catalog_key] = snapshot

    async def delete(self, catalog_key: str) -> None:
        self._snapshots.pop(catalog_key, None)


class SqliteSnapshotStore:
    """SQLite-backed snapshot store; one row per catalog key."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        await self._db.execute("PRAGMA journal_mode = WAL")
        await self._db.execute(_CREATE_CATALOG_TABLE)
        await self._db.commit()

    async def load(self, catalog_key: str) -> CatalogSnapshot | None:
        """Read the stored snapshot. Returns ``None`` on miss or read failure."""
        try:
            cursor = await self._db.execute(
                "SELECT content FROM catalog_cache WHERE catalog_key = ?",
                (catalog_key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("cache_read_error", key=catalog_key, exc_info=True)
            return None

        if row is None:
            return None
        try:
            return CatalogSnapshot.model_validate_json(row[0])
        except ValidationError:
            log.warning("cache_row_invalid", key=catalog_key, exc_info=True)
            return None

    async def save(self, snapshot: CatalogSnapshot) -> None:
        """Write the snapshot, replacing any previous one. Non-fatal on failure."""
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO catalog_cache "
                "(catalog_key, content, fetched_at, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (
                    snapshot.catalog_key,
                    snapshot.model_dump_json(),
                    snapshot.fetched_at.isoformat(),
                    snapshot.expires_at.isoformat(),
                ),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", key=snapshot.catalog_key, exc_info=True)

    async def delete(self, catalog_key: str) -> None:
        """Remove the stored snapshot. Non-fatal on failure."""
        try:
            await self._db.execute(
                "DELETE FROM catalog_cache WHERE catalog_key = ?", (catalog_key,)
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_delete_error", key=catalog_key, exc_info=True)

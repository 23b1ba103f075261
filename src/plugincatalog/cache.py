"""Time-bounded catalog cache with single-flight refresh.

The cache holds at most one ``CatalogSnapshot`` per instance. A refresh
builds a brand-new snapshot and swaps it in with a single assignment, so
readers see either the previous snapshot or the complete new one.

Concurrent refreshes share one in-flight task: N callers that find the cache
cold produce exactly one fetch batch and all receive the same snapshot (or
the same exception).
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from plugincatalog.errors import CatalogError
from plugincatalog.models.cache import CatalogSnapshot
from plugincatalog.normalizer import normalize

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from plugincatalog.client import RemoteCatalogClient
    from plugincatalog.config import Settings
    from plugincatalog.models.catalog import PackageDescriptor, PackageRecord
    from plugincatalog.store import SnapshotStore

log = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CatalogCache:
    def __init__(
        self,
        client: RemoteCatalogClient,
        store: SnapshotStore,
        settings: Settings,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._store = store
        self._settings = settings
        self._clock = clock
        self._catalog_key = settings.catalog.catalog_key
        self._ttl = timedelta(days=settings.cache.ttl_days)
        self._snapshot: CatalogSnapshot | None = None
        self._inflight: asyncio.Task[CatalogSnapshot] | None = None

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def _fresh_snapshot(self) -> CatalogSnapshot | None:
        snapshot = self._snapshot
        if snapshot is not None and snapshot.is_fresh(self._clock()):
            return snapshot
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self) -> CatalogSnapshot | None:
        """Return the current snapshot, or ``None`` if absent or expired."""
        snapshot = self._fresh_snapshot()
        if snapshot is not None:
            return snapshot

        if self._snapshot is None:
            stored = await self._store.load(self._catalog_key)
            # A refresh may have swapped in a snapshot while the store was read.
            if self._snapshot is None and stored is not None:
                self._snapshot = stored
                log.debug("catalog_snapshot_restored", key=self._catalog_key)

        return self._fresh_snapshot()

    async def load(
        self, descriptors: Iterable[PackageDescriptor], release_channel: str
    ) -> CatalogSnapshot:
        """Return a fresh snapshot, refreshing (or joining a refresh) on a miss."""
        snapshot = await self.get()
        if snapshot is not None:
            return snapshot
        log.info("catalog_cache_miss", key=self._catalog_key)
        return await self.refresh(descriptors, release_channel)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def refresh(
        self, descriptors: Iterable[PackageDescriptor], release_channel: str
    ) -> CatalogSnapshot:
        """Fetch every package and replace the snapshot.

        Per-package failures are logged and the package is left out; this
        method does not raise for them.
        """
        task = self._inflight
        if task is None:
            task = asyncio.create_task(self._refresh(list(descriptors), release_channel))
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        else:
            log.debug("catalog_refresh_joined", key=self._catalog_key)
        # Shielded so a cancelled waiter does not cancel the shared refresh.
        return await asyncio.shield(task)

    async def invalidate(self) -> None:
        """Drop the snapshot so the next ``get()`` returns ``None``."""
        self._snapshot = None
        await self._store.delete(self._catalog_key)
        log.info("catalog_cache_invalidated", key=self._catalog_key)

    def _clear_inflight(self, task: asyncio.Task[CatalogSnapshot]) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _refresh(
        self, descriptors: list[PackageDescriptor], release_channel: str
    ) -> CatalogSnapshot:
        log.info(
            "catalog_refresh_started",
            key=self._catalog_key,
            packages=len(descriptors),
            channel=release_channel,
        )
        results = await asyncio.gather(
            *(self._fetch_one(descriptor, release_channel) for descriptor in descriptors)
        )
        records = {
            descriptor.key: record
            for descriptor, record in zip(descriptors, results, strict=True)
            if record is not None
        }

        fetched_at = self._clock()
        snapshot = CatalogSnapshot(
            catalog_key=self._catalog_key,
            records=records,
            fetched_at=fetched_at,
            expires_at=fetched_at + self._ttl,
        )
        self._snapshot = snapshot
        await self._store.save(snapshot)

        log.info(
            "catalog_refresh_complete",
            key=self._catalog_key,
            packages=len(records),
            failed=len(descriptors) - len(records),
        )
        return snapshot

    async def _fetch_one(
        self, descriptor: PackageDescriptor, release_channel: str
    ) -> PackageRecord | None:
        try:
            raw = await self._client.fetch(descriptor, release_channel)
            return normalize(raw, descriptor, settings=self._settings)
        except CatalogError as exc:
            log.warning(
                "catalog_package_failed",
                key=descriptor.key,
                code=exc.code.value,
                error=exc.message,
            )
            return None
        except Exception:
            log.warning(
                "catalog_package_failed",
                key=descriptor.key,
                code="unexpected",
                exc_info=True,
            )
            return None

"""Query surface for host glue code (listing, detail, search, updates)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from plugincatalog.models.search import SearchResults
from plugincatalog.search import merge_results, search

if TYPE_CHECKING:
    from plugincatalog.cache import CatalogCache
    from plugincatalog.config import CatalogSettings
    from plugincatalog.models.cache import CatalogSnapshot
    from plugincatalog.models.catalog import PackageDescriptor, PackageRecord
    from plugincatalog.models.reconcile import ReconciliationResult, UpdateFeed
    from plugincatalog.reconcile import ReconciliationEngine

log = structlog.get_logger()


class PluginCatalog:
    """All reads go through the cache; a miss refreshes once and is never surfaced."""

    def __init__(
        self,
        cache: CatalogCache,
        engine: ReconciliationEngine,
        settings: CatalogSettings,
        descriptors: list[PackageDescriptor] | None = None,
    ) -> None:
        self._cache = cache
        self._engine = engine
        self._settings = settings
        self._descriptors = list(settings.plugins if descriptors is None else descriptors)

    @property
    def descriptors(self) -> list[PackageDescriptor]:
        return list(self._descriptors)

    @property
    def premium_url(self) -> str:
        """Upgrade link offered for packages without a license entry."""
        return self._settings.upgrade_url

    async def _snapshot(self) -> CatalogSnapshot:
        return await self._cache.load(self._descriptors, self._settings.release_channel)

    async def list_catalog(self) -> list[PackageRecord]:
        snapshot = await self._snapshot()
        return list(snapshot.records.values())

    async def get_record(self, slug: str) -> PackageRecord | None:
        snapshot = await self._snapshot()
        record = snapshot.by_slug(slug)
        if record is None:
            log.debug("catalog_record_not_found", slug=slug)
        return record

    async def search(self, query: str) -> list[PackageRecord]:
        snapshot = await self._snapshot()
        return search(snapshot.records.values(), query)

    async def merge_search(
        self, query: str, external: SearchResults | None = None
    ) -> SearchResults:
        snapshot = await self._snapshot()
        return merge_results(
            snapshot.records.values(),
            query,
            external if external is not None else SearchResults(),
            vendor_keyword=self._settings.vendor_keyword,
        )

    async def get_reconciliation(
        self, descriptor: PackageDescriptor
    ) -> ReconciliationResult | None:
        snapshot = await self._snapshot()
        record = snapshot.records.get(descriptor.key)
        if record is None:
            log.debug("catalog_record_not_found", key=descriptor.key)
            return None
        return self._engine.reconcile(descriptor, record)

    async def reconcile_all(self) -> list[ReconciliationResult]:
        snapshot = await self._snapshot()
        return [
            self._engine.reconcile(descriptor, snapshot.records[descriptor.key])
            for descriptor in self._descriptors
            if descriptor.key in snapshot.records
        ]

    async def get_update_feed(self) -> UpdateFeed:
        snapshot = await self._snapshot()
        return self._engine.build_update_feed(snapshot.records, self._descriptors)

    async def refresh(self) -> list[PackageRecord]:
        snapshot = await self._cache.refresh(self._descriptors, self._settings.release_channel)
        return list(snapshot.records.values())

    async def invalidate(self) -> None:
        await self._cache.invalidate()

"""Application state wiring.

``open_app_state`` builds every collaborator once at startup: the shared HTTP
client, the snapshot store, the cache, the reconciliation engine and the
``PluginCatalog`` facade. Host glue holds the resulting ``AppState`` for the
process lifetime and passes it to whatever handles requests.
"""

from __future__ import annotations

import contextlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
import structlog

from plugincatalog.cache import CatalogCache
from plugincatalog.catalog import PluginCatalog
from plugincatalog.client import RemoteCatalogClient, build_http_client
from plugincatalog.local import FilesystemProber, InstallationSnapshot, resolve_descriptor
from plugincatalog.reconcile import ReconciliationEngine
from plugincatalog.store import MemorySnapshotStore, SqliteSnapshotStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

    from plugincatalog.config import Settings
    from plugincatalog.local import LocalProber
    from plugincatalog.models.catalog import PackageDescriptor
    from plugincatalog.store import SnapshotStore

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    store: SnapshotStore
    cache: CatalogCache
    engine: ReconciliationEngine
    catalog: PluginCatalog


def _resolve_descriptors(settings: Settings) -> list[PackageDescriptor]:
    plugins = settings.catalog.plugins
    if settings.catalog.plugin_root is None:
        return list(plugins)
    root = Path(settings.catalog.plugin_root).expanduser()
    return [resolve_descriptor(descriptor, root) for descriptor in plugins]


def _default_prober(settings: Settings) -> LocalProber:
    if settings.catalog.plugin_root is None:
        return InstallationSnapshot()
    return FilesystemProber(
        Path(settings.catalog.plugin_root).expanduser(), settings.catalog.active_plugins
    )


@contextlib.asynccontextmanager
async def open_app_state(
    settings: Settings,
    *,
    prober: LocalProber | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncIterator[AppState]:
    """Build the full AppState and tear it down on exit.

    A caller-supplied ``http_client`` is used as-is and left open on exit.
    """
    async with contextlib.AsyncExitStack() as stack:
        if http_client is None:
            http_client = await stack.enter_async_context(build_http_client(settings.api))

        store: SnapshotStore
        if settings.cache.backend == "memory":
            store = MemorySnapshotStore()
        else:
            db_path = Path(settings.cache.db_path).expanduser()
            db_path.parent.mkdir(parents=True, exist_ok=True)
            db = await stack.enter_async_context(aiosqlite.connect(db_path))
            sqlite_store = SqliteSnapshotStore(db)
            await sqlite_store.init_db()
            store = sqlite_store

        client = RemoteCatalogClient(http_client, settings.api)
        cache = CatalogCache(client, store, settings)
        engine = ReconciliationEngine(
            prober if prober is not None else _default_prober(settings),
            licensed_slugs=settings.catalog.licensed_slugs,
            upgrade_url=settings.catalog.upgrade_url,
        )
        catalog = PluginCatalog(cache, engine, settings.catalog, _resolve_descriptors(settings))

        log.info(
            "app_state_ready",
            packages=len(catalog.descriptors),
            backend=settings.cache.backend,
            channel=settings.catalog.release_channel,
        )
        yield AppState(
            settings=settings,
            http_client=http_client,
            store=store,
            cache=cache,
            engine=engine,
            catalog=catalog,
        )

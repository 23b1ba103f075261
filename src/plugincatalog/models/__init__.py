from __future__ import annotations

from plugincatalog.models.cache import CatalogSnapshot
from plugincatalog.models.catalog import Icons, PackageDescriptor, PackageRecord, RawRecord
from plugincatalog.models.reconcile import (
    ReconciliationResult,
    ReconciliationStatus,
    UpdateDescriptor,
    UpdateFeed,
)
from plugincatalog.models.search import SearchResults

__all__ = [
    # catalog
    "PackageDescriptor",
    "RawRecord",
    "Icons",
    "PackageRecord",
    # cache
    "CatalogSnapshot",
    # reconciliation
    "ReconciliationStatus",
    "ReconciliationResult",
    "UpdateDescriptor",
    "UpdateFeed",
    # search
    "SearchResults",
]

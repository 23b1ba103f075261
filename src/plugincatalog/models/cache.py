from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from plugincatalog.models.catalog import PackageRecord


class CatalogSnapshot(BaseModel):
    """One complete refresh result. Replaced wholesale, never edited."""

    model_config = ConfigDict(frozen=True)

    catalog_key: str
    records: dict[str, PackageRecord]  # package key → record, descriptor order
    fetched_at: datetime
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at

    def by_slug(self, slug: str) -> PackageRecord | None:
        for record in self.records.values():
            if record.slug == slug:
                return record
        return None

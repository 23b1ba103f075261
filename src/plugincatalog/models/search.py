from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from plugincatalog.models.catalog import PackageRecord


class SearchResults(BaseModel):
    """Query result envelope shared with the host's own plugin search."""

    plugins: list[PackageRecord | dict[str, Any]] = []
    results: int = 0

"""Tag search over cached records, and merging into the host's own results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from plugincatalog.models.search import SearchResults

if TYPE_CHECKING:
    from collections.abc import Iterable

    from plugincatalog.models.catalog import PackageRecord


def _matches(record: PackageRecord, term: str) -> bool:
    return term in " ".join(record.tags).lower()


def search(records: Iterable[PackageRecord], query: str) -> list[PackageRecord]:
    """Case-insensitive substring match against each record's joined tags.

    A blank query returns every record.
    """
    term = query.strip().lower()
    if not term:
        return list(records)
    return [record for record in records if _matches(record, term)]


def merge_results(
    records: Iterable[PackageRecord],
    query: str,
    external: SearchResults,
    *,
    vendor_keyword: str,
) -> SearchResults:
    """Add cached records to a result set the host already produced.

    A query naming the vendor brings in the whole catalog ahead of the
    external results, and the count becomes the merged size. Any other
    non-empty query prepends only the matching records and adds their number
    to the external count. A blank query leaves the external results alone.
    """
    term = query.strip().lower()
    if not term:
        return external

    if vendor_keyword and vendor_keyword.lower() in term:
        plugins = [*records, *external.plugins]
        return SearchResults(plugins=plugins, results=len(plugins))

    found = search(records, term)
    return SearchResults(
        plugins=[*found, *external.plugins],
        results=external.results + len(found),
    )

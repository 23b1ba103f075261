"""Unit tests for plugincatalog.search."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from plugincatalog.models.search import SearchResults
from plugincatalog.search import merge_results, search

if TYPE_CHECKING:
    from plugincatalog.models.catalog import PackageDescriptor, PackageRecord


@pytest.fixture()
def records(descriptors: list[PackageDescriptor], make_record) -> list[PackageRecord]:
    editor, backup, gallery = descriptors
    return [
        make_record(editor, tags=json.dumps(["Editor", "Page Builder"])),
        make_record(backup, title="BoldGrid Backup", tags=json.dumps(["backup", "restore"])),
        make_record(gallery, title="Gallery One", tags=json.dumps(["gallery", "images"])),
    ]


@pytest.fixture()
def external() -> SearchResults:
    plugins = [{"slug": "akismet", "name": "Akismet"}, {"slug": "jetpack", "name": "Jetpack"}]
    return SearchResults(plugins=plugins, results=2)


class TestSearch:
    def test_blank_query_returns_everything(self, records: list[PackageRecord]) -> None:
        assert search(records, "   ") == records

    def test_matches_tags_case_insensitively(self, records: list[PackageRecord]) -> None:
        assert [r.key for r in search(records, "BUILDER")] == ["editor"]

    def test_matches_across_joined_tags(self, records: list[PackageRecord]) -> None:
        assert [r.key for r in search(records, "backup restore")] == ["backup"]

    def test_title_is_not_searched(self, records: list[PackageRecord]) -> None:
        assert search(records, "one") == []

    def test_query_is_trimmed(self, records: list[PackageRecord]) -> None:
        assert [r.key for r in search(records, "  images ")] == ["gallery"]


class TestMergeResults:
    def test_vendor_keyword_unions_whole_catalog(
        self, records: list[PackageRecord], external: SearchResults
    ) -> None:
        merged = merge_results(records, "BoldGrid", external, vendor_keyword="boldgrid")

        assert merged.results == len(records) + len(external.plugins)
        assert merged.plugins[: len(records)] == records
        assert merged.plugins[len(records) :] == external.plugins

    def test_vendor_keyword_inside_longer_query(
        self, records: list[PackageRecord], external: SearchResults
    ) -> None:
        merged = merge_results(records, "boldgrid backup", external, vendor_keyword="boldgrid")
        assert merged.results == 5

    def test_other_term_adds_only_matches(
        self, records: list[PackageRecord], external: SearchResults
    ) -> None:
        merged = merge_results(records, "gallery", external, vendor_keyword="boldgrid")

        assert merged.plugins[0] == records[2]
        assert merged.plugins[1:] == external.plugins
        assert merged.results == external.results + 1
        assert len(merged.plugins) < len(records) + len(external.plugins)

    def test_no_match_leaves_external_results(
        self, records: list[PackageRecord], external: SearchResults
    ) -> None:
        merged = merge_results(records, "seo", external, vendor_keyword="boldgrid")
        assert merged.plugins == external.plugins
        assert merged.results == 2

    def test_blank_query_returns_external_unchanged(
        self, records: list[PackageRecord], external: SearchResults
    ) -> None:
        assert merge_results(records, "", external, vendor_keyword="boldgrid") is external

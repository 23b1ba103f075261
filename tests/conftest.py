"""Shared fixtures: settings, descriptors and remote payload builders."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from plugincatalog.config import Settings
from plugincatalog.models.catalog import PackageDescriptor, PackageRecord, RawRecord
from plugincatalog.normalizer import normalize

API_URL = "https://api.test"
ASSETS_URL = "https://assets.test/assets"
LICENSE_KEY = "LICENSE123"

DESCRIPTION = (
    "<p>Post and Page Builder is a standalone plugin that lets you build pages "
    "with drag and drop.</p>"
)


def build_raw_data(
    title: str = "Post and Page Builder", version: str = "1.5.0", **overrides: Any
) -> dict[str, Any]:
    """A ``result.data`` object as the version endpoint returns it."""
    data: dict[str, Any] = {
        "title": title,
        "version": version,
        "sections": json.dumps(
            {
                "description": DESCRIPTION,
                "changelog": "\n\n= 1.5.0 =\n\n\n* Fixed &amp; improved.\n\n",
            }
        ),
        "tags": json.dumps(["editor", "page builder", "drag and drop"]),
        "banners": json.dumps({"low": "https://assets.test/banner-772x250.png"}),
        "release_date": "2024-01-15",
        "siteurl": "https://www.boldgrid.com/",
        "asset_id": 101,
        "tested_wp_version": "6.5",
    }
    data.update(overrides)
    return data


def build_payload(**kwargs: Any) -> dict[str, Any]:
    return {"result": {"data": build_raw_data(**kwargs)}}


class FakeClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture()
def descriptors() -> list[PackageDescriptor]:
    return [
        PackageDescriptor(
            key="editor",
            local_file="post-and-page-builder/post-and-page-builder.php",
            installed_version="1.4.0",
        ),
        PackageDescriptor(
            key="backup",
            local_file="boldgrid-backup/boldgrid-backup.php",
            installed_version="1.15.0",
        ),
        PackageDescriptor(
            key="gallery",
            local_file="gallery-one/gallery-one.php",
        ),
    ]


@pytest.fixture()
def settings(descriptors: list[PackageDescriptor]) -> Settings:
    return Settings(
        api={"base_url": API_URL, "assets_url": ASSETS_URL, "platform_version": "6.5"},
        catalog={"license_key": LICENSE_KEY, "plugins": [d.model_dump() for d in descriptors]},
        cache={"backend": "memory"},
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def make_record(settings: Settings):
    """Build a normalized PackageRecord from raw-data overrides."""

    def _make(descriptor: PackageDescriptor, **overrides: Any) -> PackageRecord:
        raw = RawRecord.model_validate(build_raw_data(**overrides))
        return normalize(raw, descriptor, settings=settings)

    return _make


@pytest.fixture()
def raw_data():
    """Factory for ``result.data`` dicts; keyword overrides replace fields."""
    return build_raw_data


@pytest.fixture()
def payload():
    """Factory for full endpoint responses wrapping ``raw_data``."""
    return build_payload

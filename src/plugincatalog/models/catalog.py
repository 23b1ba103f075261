from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_KEY_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")


class PackageDescriptor(BaseModel):
    """One tracked plugin, supplied by the host configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    local_file: str  # Main plugin file relative to the plugin root
    installed_version: str | None = None
    installed_author: str = "BoldGrid.com"

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        v = v.strip()
        if not _KEY_RE.match(v):
            raise ValueError(f"Invalid package key: {v!r}")
        return v

    @field_validator("local_file")
    @classmethod
    def validate_local_file(cls, v: str) -> str:
        v = v.strip().lstrip("/")
        if not v:
            raise ValueError("local_file must not be empty")
        return v


class RawRecord(BaseModel):
    """The ``result.data`` object returned by the version endpoint.

    Every field is optional here. Presence is enforced by the normalizer so a
    missing field fails only the package it belongs to.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    version: str | None = None
    sections: str | None = None  # JSON-encoded object
    tags: str | None = None  # JSON-encoded list or object
    banners: str | None = None  # JSON-encoded object
    release_date: str | None = None
    siteurl: str | None = None
    asset_id: int | str | None = None
    tested_wp_version: str | None = None
    requires_wp_version: str | None = None


class Icons(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    x1: str = Field(alias="1x")
    x2: str = Field(alias="2x")
    svg: str


class PackageRecord(BaseModel):
    """Normalized, cache-resident view of one remote plugin."""

    model_config = ConfigDict(frozen=True)

    key: str
    slug: str
    title: str
    version: str
    tags: list[str] = []
    sections: dict[str, str] = {}
    short_description: str = ""  # Plain text, no markup
    author: str
    author_url: str | None = None
    site_url: str | None = None
    icons: Icons
    banners: dict[str, str] = {}
    added_date: str | None = None
    last_updated: str | None = None
    download_link: str
    tested_platform_version: str | None = None
    requires_platform_version: str | None = None
    active: bool = True  # Remote listing flag; local activation lives in reconciliation

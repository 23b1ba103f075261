from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ReconciliationStatus(StrEnum):
    NOT_INSTALLED = "not_installed"
    INSTALLED_INACTIVE = "installed_inactive"
    ACTIVE = "active"
    UPDATE_AVAILABLE = "update_available"


class ReconciliationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    slug: str
    status: ReconciliationStatus
    plugin_file: str | None = None  # As reported by the local prober
    new_version: str | None = None  # Only set for UPDATE_AVAILABLE
    premium: bool = False
    upgrade_url: str | None = None  # Only set when not premium


class UpdateDescriptor(BaseModel):
    """Entry handed to the host updater for one plugin."""

    model_config = ConfigDict(frozen=True)

    plugin_file: str
    slug: str
    new_version: str
    url: str | None = None
    download_url: str
    tested_platform_version: str | None = None


class UpdateFeed(BaseModel):
    """Two-bucket update feed keyed by plugin file."""

    updates_available: dict[str, UpdateDescriptor] = {}
    up_to_date: dict[str, UpdateDescriptor] = {}

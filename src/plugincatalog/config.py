"""Settings for the catalog core.

Later sources lose to earlier ones:
  - keyword arguments passed to Settings()
  - PLUGINCATALOG__* environment variables, e.g.
    PLUGINCATALOG__CATALOG__RELEASE_CHANNEL=edge
  - plugincatalog.yaml in the working directory or ~/.config/plugincatalog/
  - the defaults below

The config file is optional, but without ``catalog.plugins`` there is nothing
to track and every catalog read returns an empty list.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from plugincatalog.models.catalog import PackageDescriptor

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("plugincatalog")
_DEFAULT_DB_PATH = os.path.join(_DEFAULT_DATA_DIR, "cache.db")


def _find_config_file() -> str | None:
    for path in (
        Path("plugincatalog.yaml"),
        Path.home() / ".config" / "plugincatalog" / "plugincatalog.yaml",
    ):
        if path.is_file():
            return str(path)
    return None


class ApiSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base_url: str = "https://api.boldgrid.com"
    assets_url: str = "https://repo.boldgrid.com/assets"
    timeout_seconds: float = 30.0
    # Host platform version reported to the API (installed_platform_version)
    platform_version: str | None = None

    @field_validator("base_url", "assets_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class CatalogSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    catalog_key: str = "boldgrid_plugins"
    release_channel: str = "stable"
    license_key: str | None = None
    vendor_keyword: str = "boldgrid"
    added_date: str = "2015-03-19"
    short_description_limit: int = 150
    # Directory holding installed plugins; enables header and presence probing
    plugin_root: str | None = None
    # Plugin files (relative to plugin_root) the host reports as active
    active_plugins: list[str] = []
    # License entitlements; a slug or "<slug>-premium" marks a package premium
    licensed_slugs: list[str] = []
    premium_url: str = "https://www.boldgrid.com/connect-keys/"
    # Reseller account panel; replaces premium_url when set
    reseller_amp_url: str | None = None
    plugins: list[PackageDescriptor] = []

    @field_validator("short_description_limit")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("short_description_limit must be >= 1")
        return v

    @property
    def upgrade_url(self) -> str:
        """Where unlicensed users are sent to buy premium."""
        return self.reseller_amp_url or self.premium_url


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ttl_days: int = 7
    db_path: str = _DEFAULT_DB_PATH
    backend: Literal["sqlite", "memory"] = "sqlite"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PLUGINCATALOG__CACHE__TTL_DAYS=1
        env_prefix="PLUGINCATALOG__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    data_dir: str = _DEFAULT_DATA_DIR
    api: ApiSettings = ApiSettings()
    catalog: CatalogSettings = CatalogSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )  # no .env or secrets-dir support

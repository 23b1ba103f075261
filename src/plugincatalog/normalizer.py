"""Raw API record → PackageRecord.

Pure functions, no I/O. Any absent or malformed field raises
``CatalogError(DECODE_FAILED)`` for that one package; no other exception type
leaves :func:`normalize`.
"""

from __future__ import annotations

import html
import json
import re
import unicodedata
from typing import TYPE_CHECKING, Any

import httpx

from plugincatalog.errors import CatalogError, ErrorCode
from plugincatalog.models.catalog import Icons, PackageRecord

if TYPE_CHECKING:
    from plugincatalog.config import Settings
    from plugincatalog.models.catalog import PackageDescriptor, RawRecord

ASSET_ENDPOINT = "/api/asset/get"
ELLIPSIS = " …"

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
# A line break followed by whitespace-only lines collapses to one newline.
_BLANK_LINES_RE = re.compile(r"(^[\r\n]*|[\r\n]+)[\s\t]*[\r\n]+")
_SCRIPT_STYLE_RE = re.compile(r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]*>")


def _decode_error(key: str, message: str) -> CatalogError:
    return CatalogError(ErrorCode.DECODE_FAILED, f"{key}: {message}")


def slugify(title: str) -> str:
    """URL-safe slug: ASCII, lowercase, hyphen-separated."""
    ascii_title = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    return _NON_ALNUM_RE.sub("-", ascii_title.lower()).strip("-")


def strip_tags(text: str) -> str:
    """Remove markup, including the bodies of script and style elements."""
    text = _SCRIPT_STYLE_RE.sub("", text)
    return _TAG_RE.sub("", text).strip()


def short_description(text: str, limit: int = 150) -> str:
    """Plain-text summary of at most ``limit`` characters.

    When cutting is needed and a sentence ends inside the last 20% of the
    window, the summary ends on that sentence. Otherwise the cut text gets an
    ellipsis marker.
    """
    text = _WHITESPACE_RE.sub(" ", strip_tags(text)).strip()
    if len(text) <= limit:
        return text

    head = text[:limit]
    pos = head.rfind(".")
    if pos > 0.8 * limit:
        return head[: pos + 1]
    return head + ELLIPSIS


def _load_json(key: str, field: str, encoded: str) -> Any:
    try:
        return json.loads(encoded)
    except json.JSONDecodeError as exc:
        raise _decode_error(key, f"{field} is not valid JSON ({exc.msg})") from exc
    except RecursionError as exc:
        raise _decode_error(key, f"{field} is nested too deeply") from exc


def decode_sections(key: str, encoded: str) -> dict[str, str]:
    data = _load_json(key, "sections", _WHITESPACE_RE.sub(" ", encoded.strip()))
    if not isinstance(data, dict):
        raise _decode_error(key, "sections must be a JSON object")

    sections: dict[str, str] = {}
    for name, body in data.items():
        if not isinstance(body, str):
            raise _decode_error(key, f"section {name!r} must be a string")
        body = _BLANK_LINES_RE.sub("\n", body)
        sections[name] = html.unescape(body).strip()
    return sections


def decode_tags(key: str, encoded: str | None) -> list[str]:
    if encoded is None or not encoded.strip():
        return []
    data = _load_json(key, "tags", encoded)
    if isinstance(data, dict):
        data = list(data.values())
    if not isinstance(data, list) or not all(isinstance(tag, str) for tag in data):
        raise _decode_error(key, "tags must be a JSON list of strings")
    return list(dict.fromkeys(tag.strip() for tag in data if tag.strip()))


def decode_banners(key: str, encoded: str | None) -> dict[str, str]:
    if encoded is None or not encoded.strip():
        return {}
    data = _load_json(key, "banners", encoded)
    if data in (None, []):
        return {}
    if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
        raise _decode_error(key, "banners must be a JSON object of strings")
    return data


def build_icons(assets_url: str, slug: str) -> Icons:
    return Icons(
        x1=f"{assets_url}/icon-{slug}-128x128.png",
        x2=f"{assets_url}/icon-{slug}-256x256.png",
        svg=f"{assets_url}/icon-{slug}-128x128.svg",
    )


def build_download_link(
    api_url: str,
    *,
    license_key: str | None,
    asset_id: int | str,
    installed_version: str | None,
    platform_version: str | None,
) -> str:
    """Asset download URL carrying the license key and installed versions."""
    url = httpx.URL(
        api_url + ASSET_ENDPOINT,
        params={
            "key": license_key or "",
            "id": str(asset_id),
            "installed_plugin_version": installed_version or "",
            "installed_platform_version": platform_version or "",
        },
    )
    return str(url)


def _require(key: str, field: str, value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise _decode_error(key, f"missing required field {field!r}")
    return value


def normalize(
    raw: RawRecord, descriptor: PackageDescriptor, *, settings: Settings
) -> PackageRecord:
    key = descriptor.key
    title = _require(key, "title", raw.title).strip()
    version = _require(key, "version", raw.version).strip()
    encoded_sections = _require(key, "sections", raw.sections)
    asset_id = _require(key, "asset_id", raw.asset_id)

    slug = slugify(title)
    if not slug:
        raise _decode_error(key, f"title {title!r} produces an empty slug")

    sections = decode_sections(key, encoded_sections)

    return PackageRecord(
        key=key,
        slug=slug,
        title=title,
        version=version,
        tags=decode_tags(key, raw.tags),
        sections=sections,
        short_description=short_description(
            sections.get("description", ""), settings.catalog.short_description_limit
        ),
        author=descriptor.installed_author,
        author_url=raw.siteurl,
        site_url=raw.siteurl,
        icons=build_icons(settings.api.assets_url, slug),
        banners=decode_banners(key, raw.banners),
        added_date=settings.catalog.added_date,
        last_updated=raw.release_date,
        download_link=build_download_link(
            settings.api.base_url,
            license_key=settings.catalog.license_key,
            asset_id=asset_id,
            installed_version=descriptor.installed_version,
            platform_version=settings.api.platform_version,
        ),
        tested_platform_version=raw.tested_wp_version,
        requires_platform_version=raw.requires_wp_version,
    )

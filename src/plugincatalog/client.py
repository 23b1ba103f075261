"""Remote version API client.

One GET per tracked package. The client never retries and never touches the
cache; every failure is raised as a ``CatalogError`` so the caller can drop
that single package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import ValidationError

from plugincatalog import __version__
from plugincatalog.errors import CatalogError, ErrorCode
from plugincatalog.models.catalog import RawRecord

if TYPE_CHECKING:
    from plugincatalog.config import ApiSettings
    from plugincatalog.models.catalog import PackageDescriptor

log = structlog.get_logger()

VERSION_ENDPOINT = "/api/open/getPluginVersion"


def build_http_client(settings: ApiSettings) -> httpx.AsyncClient:
    """Create the shared AsyncClient used for every catalog request."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": f"plugincatalog/{__version__}",
            "Accept": "application/json",
        },
        follow_redirects=True,
    )


def build_query(
    descriptor: PackageDescriptor,
    release_channel: str,
    platform_version: str | None,
) -> dict[str, str]:
    return {
        "key": descriptor.key,
        "channel": release_channel,
        f"installed_{descriptor.key}_version": descriptor.installed_version or "",
        "installed_platform_version": platform_version or "",
    }


def _extract_data(payload: Any) -> Any:
    """Unwrap the ``{"result": {"data": {...}}}`` envelope."""
    if not isinstance(payload, dict):
        return None
    result = payload.get("result")
    if not isinstance(result, dict):
        return None
    return result.get("data")


class RemoteCatalogClient:
    def __init__(self, client: httpx.AsyncClient, settings: ApiSettings) -> None:
        self._client = client
        self._settings = settings

    @property
    def endpoint(self) -> str:
        return self._settings.base_url + VERSION_ENDPOINT

    async def fetch(self, descriptor: PackageDescriptor, release_channel: str) -> RawRecord:
        """Fetch the raw record for one package.

        Raises:
            CatalogError: FETCH_FAILED on transport errors, timeouts, non-2xx
                responses or a body without the ``result.data`` envelope;
                DECODE_FAILED when ``result.data`` has wrongly typed fields.
        """
        params = build_query(descriptor, release_channel, self._settings.platform_version)
        try:
            response = await self._client.get(self.endpoint, params=params)
        except httpx.TimeoutException as exc:
            raise CatalogError(
                ErrorCode.FETCH_FAILED,
                f"Timed out fetching {descriptor.key!r}: {exc}",
                recoverable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogError(
                ErrorCode.FETCH_FAILED,
                f"Network error fetching {descriptor.key!r}: {exc}",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise CatalogError(
                ErrorCode.FETCH_FAILED,
                f"HTTP {response.status_code} fetching {descriptor.key!r}",
                recoverable=response.status_code >= 500,
            )

        try:
            payload = response.json()
        except (ValueError, RecursionError) as exc:
            raise CatalogError(
                ErrorCode.FETCH_FAILED,
                f"Response for {descriptor.key!r} is not valid JSON",
            ) from exc

        data = _extract_data(payload)
        if not isinstance(data, dict):
            raise CatalogError(
                ErrorCode.FETCH_FAILED,
                f"Response for {descriptor.key!r} has no result.data object",
            )

        try:
            record = RawRecord.model_validate(data)
        except ValidationError as exc:
            raise CatalogError(
                ErrorCode.DECODE_FAILED,
                f"Malformed record for {descriptor.key!r}: {exc.error_count()} invalid field(s)",
            ) from exc

        log.debug("catalog_fetch_complete", key=descriptor.key, channel=release_channel)
        return record

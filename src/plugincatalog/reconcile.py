"""Cached remote state vs. local installation state.

Everything here is read-only over the snapshot: the engine never triggers a
fetch and never mutates cached records.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plugincatalog.models.reconcile import (
    ReconciliationResult,
    ReconciliationStatus,
    UpdateDescriptor,
    UpdateFeed,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping

    from plugincatalog.local import LocalProber
    from plugincatalog.models.catalog import PackageDescriptor, PackageRecord


def is_premium(slug: str, licensed: Collection[str]) -> bool:
    """A license entry for the slug itself or its ``-premium`` variant counts."""
    return slug in licensed or f"{slug}-premium" in licensed


def classify(
    descriptor: PackageDescriptor,
    record: PackageRecord,
    *,
    present: bool,
    active: bool,
    plugin_file: str | None = None,
    licensed: Collection[str] = frozenset(),
    upgrade_url: str | None = None,
) -> ReconciliationResult:
    """Decision table for one package.

    A version mismatch wins over activation state, so an installed but
    inactive package that is behind still reports UPDATE_AVAILABLE.
    Packages without a license entry carry ``upgrade_url``.
    """
    if not present:
        status = ReconciliationStatus.NOT_INSTALLED
    elif descriptor.installed_version != record.version:
        status = ReconciliationStatus.UPDATE_AVAILABLE
    elif active:
        status = ReconciliationStatus.ACTIVE
    else:
        status = ReconciliationStatus.INSTALLED_INACTIVE

    premium = is_premium(record.slug, licensed)
    return ReconciliationResult(
        key=descriptor.key,
        slug=record.slug,
        status=status,
        plugin_file=plugin_file if present else None,
        new_version=record.version if status is ReconciliationStatus.UPDATE_AVAILABLE else None,
        premium=premium,
        upgrade_url=None if premium else upgrade_url,
    )


class ReconciliationEngine:
    def __init__(
        self,
        prober: LocalProber,
        *,
        licensed_slugs: Iterable[str] = (),
        upgrade_url: str | None = None,
    ) -> None:
        self._prober = prober
        self._licensed = frozenset(licensed_slugs)
        self._upgrade_url = upgrade_url

    def reconcile(
        self, descriptor: PackageDescriptor, record: PackageRecord
    ) -> ReconciliationResult:
        plugin_file = self._prober.is_file_installed(record.slug)
        present = plugin_file is not None
        active = present and self._prober.is_active(plugin_file)
        return classify(
            descriptor,
            record,
            present=present,
            active=active,
            plugin_file=plugin_file,
            licensed=self._licensed,
            upgrade_url=self._upgrade_url,
        )

    def build_update_feed(
        self,
        records: Mapping[str, PackageRecord],
        descriptors: Iterable[PackageDescriptor],
    ) -> UpdateFeed:
        """Split tracked packages into the updater's two buckets.

        Both buckets are keyed by the descriptor's plugin file. A package lands
        in ``updates_available`` when it is installed locally and its version
        differs from the cached one; everything else is ``up_to_date``.
        Descriptors without a cached record are left out.
        """
        feed = UpdateFeed()
        for descriptor in descriptors:
            record = records.get(descriptor.key)
            if record is None:
                continue

            needs_update = (
                descriptor.installed_version != record.version
                and self._prober.is_file_installed(record.slug) is not None
            )
            update = UpdateDescriptor(
                plugin_file=descriptor.local_file,
                slug=record.slug,
                new_version=record.version,
                url=record.site_url,
                download_url=record.download_link,
                tested_platform_version=record.tested_platform_version if needs_update else None,
            )
            if needs_update:
                feed.updates_available[descriptor.local_file] = update
            else:
                feed.up_to_date[descriptor.local_file] = update
        return feed

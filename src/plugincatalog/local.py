"""Local installation state.

The catalog core never inspects the host directly; it asks a ``LocalProber``.
Two implementations are provided: a static snapshot supplied by the host, and
a prober that scans a plugin directory for WordPress-style plugin headers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from plugincatalog.models.catalog import PackageDescriptor

log = structlog.get_logger()

# Headers live in the first 8 KiB of the main plugin file.
_HEADER_READ_BYTES = 8192
_HEADER_FIELDS = ("Plugin Name", "Version", "Author", "Author URI", "Requires at least")


class LocalProber(Protocol):
    def is_file_installed(self, slug: str) -> str | None:
        """Return the installed main plugin file for ``slug``, if any."""
        ...

    def is_active(self, plugin_file: str) -> bool: ...


@dataclass(frozen=True)
class InstallationSnapshot:
    """Host-supplied view of what is installed and what is active."""

    installed: dict[str, str] = field(default_factory=dict)  # slug → plugin file
    active: frozenset[str] = frozenset()  # plugin files

    def is_file_installed(self, slug: str) -> str | None:
        return self.installed.get(slug)

    def is_active(self, plugin_file: str) -> bool:
        return plugin_file in self.active


def read_plugin_header(path: Path) -> dict[str, str]:
    """Parse the plugin header comment block of ``path``.

    Returns only the fields that are present; an unreadable file yields ``{}``.
    """
    try:
        with path.open("r", encoding="utf-8", errors="replace") as fh:
            text = fh.read(_HEADER_READ_BYTES)
    except OSError:
        log.debug("plugin_header_unreadable", path=str(path))
        return {}

    headers: dict[str, str] = {}
    for name in _HEADER_FIELDS:
        pattern = rf"^(?:[ \t]*<\?php)?[ \t/*#@]*{re.escape(name)}:(.*)$"
        match = re.search(pattern, text, re.MULTILINE | re.IGNORECASE)
        if match:
            value = re.sub(r"\s*(?:\*/|\?>).*$", "", match.group(1)).strip()
            if value:
                headers[name] = value
    return headers


class FilesystemProber:
    """Finds installed plugins under ``plugin_root``.

    A plugin is ``<dir>/<file>.php`` whose header declares a Plugin Name; its
    slug is the directory name. The directory is scanned once, on first use.
    """

    def __init__(self, plugin_root: Path, active_files: Iterable[str] = ()) -> None:
        self._root = plugin_root
        self._active = frozenset(active_files)
        self._installed: dict[str, str] | None = None

    def _scan(self) -> dict[str, str]:
        installed: dict[str, str] = {}
        if not self._root.is_dir():
            log.warning("plugin_root_missing", path=str(self._root))
            return installed
        for php_file in sorted(self._root.glob("*/*.php")):
            slug = php_file.parent.name
            if slug in installed:
                continue
            if "Plugin Name" in read_plugin_header(php_file):
                installed[slug] = f"{slug}/{php_file.name}"
        return installed

    def rescan(self) -> None:
        self._installed = None

    def is_file_installed(self, slug: str) -> str | None:
        if self._installed is None:
            self._installed = self._scan()
        return self._installed.get(slug)

    def is_active(self, plugin_file: str) -> bool:
        return plugin_file in self._active


def resolve_descriptor(descriptor: PackageDescriptor, plugin_root: Path) -> PackageDescriptor:
    """Fill installed version and author from the local plugin header."""
    headers = read_plugin_header(plugin_root / descriptor.local_file)
    if not headers:
        return descriptor
    return descriptor.model_copy(
        update={
            "installed_version": headers.get("Version", descriptor.installed_version),
            "installed_author": headers.get("Author", descriptor.installed_author),
        }
    )

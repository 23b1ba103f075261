"""Integration test fixtures.

Provides a fully wired AppState (memory-backed store, real httpx client) with
the remote version endpoint mocked by respx. Descriptor and payload fixtures
come from tests/conftest.py.
"""

from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from plugincatalog.local import InstallationSnapshot
from plugincatalog.state import open_app_state

if TYPE_CHECKING:
    from pathlib import Path

    from plugincatalog.config import Settings
    from plugincatalog.state import AppState

ENDPOINT = "https://api.test/api/open/getPluginVersion"
EDITOR_FILE = "post-and-page-builder/post-and-page-builder.php"
BACKUP_FILE = "boldgrid-backup/boldgrid-backup.php"


@pytest.fixture()
def mock_api(payload):
    """One named route per tracked package key."""
    with respx.mock(assert_all_called=False) as router:
        router.get(ENDPOINT, params={"key": "editor"}, name="editor").mock(
            return_value=httpx.Response(200, json=payload(version="1.5.0"))
        )
        router.get(ENDPOINT, params={"key": "backup"}, name="backup").mock(
            return_value=httpx.Response(
                200,
                json=payload(
                    title="BoldGrid Backup",
                    version="1.15.0",
                    tags=json.dumps(["backup", "restore"]),
                ),
            )
        )
        router.get(ENDPOINT, params={"key": "gallery"}, name="gallery").mock(
            return_value=httpx.Response(
                200,
                json=payload(title="Gallery One", version="2.0.0", tags=json.dumps(["gallery"])),
            )
        )
        yield router


@pytest.fixture()
def prober() -> InstallationSnapshot:
    return InstallationSnapshot(
        installed={"post-and-page-builder": EDITOR_FILE, "boldgrid-backup": BACKUP_FILE},
        active=frozenset({BACKUP_FILE}),
    )


@pytest.fixture()
async def app_state(settings: Settings, mock_api, prober: InstallationSnapshot) -> AppState:
    async with open_app_state(settings, prober=prober) as state:
        yield state


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Environment for running the entry point in isolation from user config."""
    env = {
        key: value for key, value in os.environ.items() if not key.startswith("PLUGINCATALOG__")
    }
    env["HOME"] = str(tmp_path)
    env["PLUGINCATALOG__CACHE__DB_PATH"] = str(tmp_path / "cache.db")
    return env

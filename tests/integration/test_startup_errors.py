"""Tests for the admin entry point's startup behaviour."""

from __future__ import annotations

import json
import subprocess
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def _run(
    args: list[str], env: dict[str, str], cwd: Path, timeout: int = 30
) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, "-m", "plugincatalog", *args],
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        timeout=timeout,
        env=env,
        cwd=cwd,
    )


class TestBadConfig:
    def test_wrong_type_exits_non_zero(
        self, tmp_path: Path, subprocess_env: dict[str, str]
    ) -> None:
        env = {**subprocess_env, "PLUGINCATALOG__CACHE__TTL_DAYS": "not-a-number"}
        result = _run(["list"], env, tmp_path)
        assert result.returncode != 0

    def test_invalid_yaml_value_exits_non_zero(
        self, tmp_path: Path, subprocess_env: dict[str, str]
    ) -> None:
        (tmp_path / "plugincatalog.yaml").write_text(
            "catalog:\n  plugins:\n    - key: ''\n      local_file: a/a.php\n", encoding="utf-8"
        )
        result = _run(["list"], subprocess_env, tmp_path)
        assert result.returncode != 0

    def test_unknown_command_exits_with_usage_error(
        self, tmp_path: Path, subprocess_env: dict[str, str]
    ) -> None:
        result = _run(["frobnicate"], subprocess_env, tmp_path)
        assert result.returncode == 2


class TestEmptyCatalog:
    def test_list_without_tracked_plugins_prints_empty_list(
        self, tmp_path: Path, subprocess_env: dict[str, str]
    ) -> None:
        """No descriptors means no network calls and an empty JSON list."""
        result = _run(["list"], subprocess_env, tmp_path)
        assert result.returncode == 0, result.stderr
        assert json.loads(result.stdout) == []
        assert (tmp_path / "cache.db").exists()

    def test_updates_without_tracked_plugins(
        self, tmp_path: Path, subprocess_env: dict[str, str]
    ) -> None:
        env = {**subprocess_env, "PLUGINCATALOG__CACHE__BACKEND": "memory"}
        result = _run(["updates"], env, tmp_path)
        assert result.returncode == 0, result.stderr
        assert json.loads(result.stdout) == {"updates_available": {}, "up_to_date": {}}

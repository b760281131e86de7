"""Tests for happypair.config -- XDG paths, endpoint precedence, atomic writes."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from happypair.config import (
    DEFAULT_SERVER_URL,
    DEFAULT_WEBAPP_URL,
    atomic_write,
    get_data_dir,
    resolve_server_url,
    resolve_webapp_url,
)


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("happypair.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.delenv("HAPPY_HOME_DIR", raising=False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "happypair"

    def test_happy_home_dir_overrides_xdg(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("happypair.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
        monkeypatch.setenv("HAPPY_HOME_DIR", str(tmp_path / "happy"))

        assert get_data_dir() == tmp_path / "happy"
        assert (tmp_path / "happy").is_dir()


class TestNonXDGPaths:
    def test_fallback_data_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("happypair.config._is_xdg_platform", lambda: False)
        monkeypatch.delenv("HAPPY_HOME_DIR", raising=False)
        monkeypatch.setattr(Path, "home", staticmethod(lambda: tmp_path))

        assert get_data_dir() == tmp_path / ".happypair"


# ---------------------------------------------------------------------------
# Endpoint precedence
# ---------------------------------------------------------------------------


class TestEndpointResolution:
    def test_defaults(self, isolated_config: Path) -> None:
        assert resolve_server_url() == DEFAULT_SERVER_URL
        assert resolve_webapp_url() == DEFAULT_WEBAPP_URL

    def test_env_overrides_default(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HAPPY_SERVER_URL", "http://localhost:3005")
        monkeypatch.setenv("HAPPY_WEBAPP_URL", "http://localhost:8081")

        assert resolve_server_url() == "http://localhost:3005"
        assert resolve_webapp_url() == "http://localhost:8081"

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HAPPY_SERVER_URL", "http://from-env")

        assert resolve_server_url("http://from-cli") == "http://from-cli"

    def test_empty_env_ignored(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HAPPY_SERVER_URL", "")
        assert resolve_server_url() == DEFAULT_SERVER_URL

    def test_trailing_slash_stripped(self, isolated_config: Path) -> None:
        assert resolve_server_url("http://localhost:3005/") == "http://localhost:3005"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.json"
        atomic_write(target, '{"a": 1}\n')
        assert target.read_text(encoding="utf-8") == '{"a": 1}\n'

    def test_replaces_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")
        atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_applies_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "secret.json"
        atomic_write(target, "{}", mode=0o600)
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_cleans_up_temp_file_on_failure(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        with patch("happypair.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, "data")

        assert list(tmp_path.iterdir()) == []

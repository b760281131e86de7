"""Tests for the ``happypair auth`` command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from happypair.app import app
from happypair.exceptions import TransportError
from happypair.exit_codes import EXIT_AUTH_FAILURE
from happypair.models import DataKeyCredentials
from happypair.persistence import CredentialStore, SettingsStore


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def data_dir(isolated_config: Path) -> Path:
    return isolated_config / "data" / "happypair"


class TestStatus:
    def test_not_authenticated(self, runner, isolated_config) -> None:
        result = runner.invoke(app, ["auth", "status"])

        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "Not authenticated" in result.output

    def test_authenticated(self, runner, data_dir) -> None:
        CredentialStore(data_dir).write_legacy(b"\x01" * 32, "tok")

        result = runner.invoke(app, ["auth", "status"])

        assert result.exit_code == 0
        assert "legacy" in result.output

    def test_json_does_not_reveal_secrets(self, runner, data_dir) -> None:
        store = CredentialStore(data_dir)
        store.write_data_key(b"\x02" * 32, b"\x03" * 32, "secret-token")
        SettingsStore(data_dir).update_settings(
            lambda s: s.model_copy(update={"machine_id": "m-1"})
        )

        result = runner.invoke(app, ["--json", "auth", "status"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data == {
            "authenticated": True,
            "type": "dataKey",
            "machine_id": "m-1",
            "path": str(store.path),
        }
        assert "secret-token" not in result.output

    def test_json_not_authenticated(self, runner, isolated_config) -> None:
        result = runner.invoke(app, ["--json", "auth", "status"])

        assert result.exit_code == EXIT_AUTH_FAILURE
        assert json.loads(result.stdout)["authenticated"] is False


class TestLogout:
    def test_removes_credentials(self, runner, data_dir) -> None:
        store = CredentialStore(data_dir)
        store.write_legacy(b"\x01" * 32, "tok")

        result = runner.invoke(app, ["auth", "logout"])

        assert result.exit_code == 0
        assert "Logged out" in result.output
        assert store.read_credentials() is None

    def test_nothing_stored(self, runner, isolated_config) -> None:
        result = runner.invoke(app, ["auth", "logout"])

        assert result.exit_code == 0
        assert "No stored credentials" in result.output


class TestLogin:
    def test_passes_endpoint_overrides(self, runner, isolated_config, monkeypatch) -> None:
        seen: dict = {}
        credentials = DataKeyCredentials(
            public_key=b"\x02" * 32, machine_key=b"\x03" * 32, token="tok"
        )

        def fake_setup(server_url=None, webapp_url=None, credential_store=None, **kwargs):
            seen["server_url"] = server_url
            seen["webapp_url"] = webapp_url
            return credentials, "m-42"

        monkeypatch.setattr("happypair.auth.auth_and_setup_machine_if_needed", fake_setup)

        result = runner.invoke(
            app,
            [
                "--server-url",
                "http://localhost:3005",
                "--webapp-url",
                "http://localhost:8081",
                "auth",
                "login",
            ],
        )

        assert result.exit_code == 0, result.output
        assert seen == {
            "server_url": "http://localhost:3005",
            "webapp_url": "http://localhost:8081",
        }
        assert "dataKey" in result.output
        assert "m-42" in result.output

    def test_force_clears_stored_credentials(self, runner, data_dir, monkeypatch) -> None:
        store = CredentialStore(data_dir)
        store.write_legacy(b"\x01" * 32, "old")
        seen: list = []

        def fake_setup(credential_store=None, **kwargs):
            seen.append(credential_store.read_credentials())
            return store.write_legacy(b"\x09" * 32, "new"), "m-1"

        monkeypatch.setattr("happypair.auth.auth_and_setup_machine_if_needed", fake_setup)

        result = runner.invoke(app, ["auth", "login", "--force"])

        assert result.exit_code == 0, result.output
        assert seen == [None]
        assert store.read_credentials().token == "new"

    def test_errors_propagate(self, runner, isolated_config, monkeypatch) -> None:
        def fake_setup(**kwargs):
            raise TransportError("Failed to reach the Happy server. Please try again later.")

        monkeypatch.setattr("happypair.auth.auth_and_setup_machine_if_needed", fake_setup)

        result = runner.invoke(app, ["auth", "login"])

        assert isinstance(result.exception, TransportError)


class TestRoot:
    def test_version(self, runner) -> None:
        from happypair import __version__

        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

"""Shared test fixtures for happypair.

Provides isolated config environments, output state management, a fake
Happy server built on :class:`httpx.MockTransport`, and helpers to seal
approval bundles the way the mobile app does.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from happypair.crypto import decode_base64, encode_base64, seal_bundle
from happypair.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When CliRunner redirects those streams during a test,
    the cached references go stale once the test finishes.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and data to a temporary directory.

    Points XDG_DATA_HOME at a subdirectory of tmp_path, clears all
    HAPPY_* overrides, and changes the working directory to tmp_path.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("happypair.config._is_xdg_platform", lambda: True)

    for var in ["HAPPY_SERVER_URL", "HAPPY_WEBAPP_URL", "HAPPY_HOME_DIR"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, uncoloured OutputManager as the global output."""
    output = OutputManager(quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Fake Happy server
# ---------------------------------------------------------------------------


class FakeHappyServer:
    """Scripted ``/v1/auth/request`` endpoint.

    Each request consumes the next scripted reply. A reply is either an
    :class:`httpx.Response`, a ``(status, body)`` tuple, a callable that
    receives the decoded request body and returns such a tuple, or an
    exception instance to raise (e.g. :class:`httpx.ConnectError`). The
    last reply is repeated once the script runs out.

    Every request body is recorded in :attr:`requests`.
    """

    def __init__(self, replies: Iterable[Any]) -> None:
        self._replies = list(replies)
        self.requests: list[dict[str, Any]] = []
        self.paths: list[str] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        body = json.loads(request.content)
        self.requests.append(body)
        index = min(len(self.requests) - 1, len(self._replies) - 1)
        reply = self._replies[index]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if callable(reply):
            reply = reply(body)
        status, body = reply
        return httpx.Response(status, json=body)

    @property
    def call_count(self) -> int:
        return len(self.requests)


@pytest.fixture
def fake_server() -> Callable[..., FakeHappyServer]:
    """Factory for :class:`FakeHappyServer` instances."""

    def _make(*replies: Any) -> FakeHappyServer:
        return FakeHappyServer(replies)

    return _make


@pytest.fixture
def authorized() -> Callable[..., Callable[[dict[str, Any]], tuple[int, dict[str, Any]]]]:
    """Build a reply that approves the request with a payload sealed for its sender.

    The returned reply reads ``publicKey`` from the request body, so it
    works without knowing the terminal's keypair in advance.
    """

    def _make(plaintext: bytes, token: str = "server-token"):
        def _reply(body: dict[str, Any]) -> tuple[int, dict[str, Any]]:
            bundle = seal_bundle(plaintext, decode_base64(body["publicKey"]))
            return 200, {
                "state": "authorized",
                "token": token,
                "response": encode_base64(bundle),
            }

        return _reply

    return _make

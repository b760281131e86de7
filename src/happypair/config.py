"""Configuration: XDG paths, endpoint resolution, and atomic writes.

This module handles all persistent configuration for happypair:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.happypair/`` on macOS and Windows. ``HAPPY_HOME_DIR`` overrides the
  data directory on every platform. See :func:`get_data_dir`.
* **Endpoints** -- :func:`resolve_server_url` and :func:`resolve_webapp_url`
  merge CLI flags, environment variables, and built-in defaults.
* **Atomic writes** -- :func:`atomic_write` writes through a temp file and
  ``os.replace`` so a crash never leaves a half-written credential file.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

_APP_NAME = "happypair"

DEFAULT_SERVER_URL = "https://api.cluster-fluster.com"
"""Happy API server used when no override is configured."""

DEFAULT_WEBAPP_URL = "https://app.happy.engineering"
"""Happy web app hosting the browser pairing page."""

SERVER_URL_ENV = "HAPPY_SERVER_URL"
WEBAPP_URL_ENV = "HAPPY_WEBAPP_URL"
HOME_DIR_ENV = "HAPPY_HOME_DIR"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (credentials, settings, crash logs), creating it if necessary.

    ``$HAPPY_HOME_DIR`` wins when set. Otherwise on Linux/BSD:
    ``$XDG_DATA_HOME/happypair/`` (default ``~/.local/share/happypair/``),
    and on macOS/Windows: ``~/.happypair/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    override = os.environ.get(HOME_DIR_ENV, "")
    if override:
        path = Path(override).expanduser()
    elif _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Endpoint resolution ---


def _resolve(cli_value: Optional[str], env_var: str, default: str) -> str:
    """Apply CLI > environment > default precedence and strip a trailing slash."""
    value = cli_value or os.environ.get(env_var, "") or default
    return value.rstrip("/")


def resolve_server_url(cli_value: Optional[str] = None) -> str:
    """Return the Happy API server URL.

    Precedence (high to low):
        1. ``--server-url`` CLI flag
        2. ``HAPPY_SERVER_URL`` environment variable
        3. :data:`DEFAULT_SERVER_URL`
    """
    return _resolve(cli_value, SERVER_URL_ENV, DEFAULT_SERVER_URL)


def resolve_webapp_url(cli_value: Optional[str] = None) -> str:
    """Return the Happy web app URL (``--webapp-url`` > ``HAPPY_WEBAPP_URL`` > default)."""
    return _resolve(cli_value, WEBAPP_URL_ENV, DEFAULT_WEBAPP_URL)


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written.
    On any failure the temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise

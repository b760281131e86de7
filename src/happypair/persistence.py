"""Persistent credential and settings storage.

Credentials live in ``<data_dir>/access.key`` and settings in
``<data_dir>/settings.json`` (see :func:`happypair.config.get_data_dir`).
Both files are JSON and are written atomically via
:func:`happypair.config.atomic_write`; the credential file is created with
``0o600`` permissions so secrets are never world-readable, even momentarily.

The credential file holds exactly one :data:`~happypair.models.Credentials`
variant and its ``type`` tag, so the shape survives a round trip to disk.

See Also:
    :mod:`happypair.auth` -- the handshake that produces the credentials.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from happypair.config import atomic_write, get_data_dir
from happypair.exceptions import ConfigError
from happypair.models import (
    Credentials,
    DataKeyCredentials,
    LegacyCredentials,
    Settings,
    credentials_adapter,
)

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "access.key"
SETTINGS_FILENAME = "settings.json"


class CredentialStore:
    """Read/write the credentials of this machine.

    Args:
        data_dir: Directory holding the credential file. Defaults to
            :func:`~happypair.config.get_data_dir`.

    Example::

        store = CredentialStore()
        store.write_legacy(secret=b"\\x01" * 32, token="tok")
        creds = store.read_credentials()
        assert creds.type == "legacy"
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self._path = (data_dir or get_data_dir()) / CREDENTIALS_FILENAME

    @property
    def path(self) -> Path:
        """The filesystem path of the credential file."""
        return self._path

    def read_credentials(self) -> Optional[Credentials]:
        """Load the stored credentials.

        Returns:
            The stored variant, or ``None`` if the file does not exist or
            cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return credentials_adapter.validate_python(data)
        except (json.JSONDecodeError, ValidationError, OSError) as exc:
            logger.warning("Ignoring unreadable credentials at %s: %s", self._path, exc)
            return None

    def write_legacy(self, secret: bytes, token: str) -> LegacyCredentials:
        """Persist a shared-secret credential and return it."""
        credentials = LegacyCredentials(secret=secret, token=token)
        self.save(credentials)
        return credentials

    def write_data_key(
        self, public_key: bytes, machine_key: bytes, token: str
    ) -> DataKeyCredentials:
        """Persist a data-key credential and return it."""
        credentials = DataKeyCredentials(
            public_key=public_key, machine_key=machine_key, token=token
        )
        self.save(credentials)
        return credentials

    def save(self, credentials: Credentials) -> None:
        """Write *credentials* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        data = credentials_adapter.dump_python(credentials, mode="json")
        atomic_write(self._path, json.dumps(data, indent=2) + "\n", mode=0o600)

    def clear(self) -> bool:
        """Delete the credential file.

        Returns:
            ``True`` if a file was removed, ``False`` if there was none.
        """
        if self._path.is_file():
            self._path.unlink()
            return True
        return False


class SettingsStore:
    """Read/update ``settings.json``.

    Args:
        data_dir: Directory holding the settings file. Defaults to
            :func:`~happypair.config.get_data_dir`.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self._path = (data_dir or get_data_dir()) / SETTINGS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def read_settings(self) -> Settings:
        """Load settings, returning defaults when the file does not exist.

        Raises:
            ConfigError: If the file exists but is not valid settings JSON.
        """
        if not self._path.is_file():
            return Settings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Settings.model_validate(data)
        except (json.JSONDecodeError, ValueError) as exc:
            raise ConfigError(f"Invalid settings at {self._path}: {exc}") from exc

    def update_settings(self, update: Callable[[Settings], Settings]) -> Settings:
        """Apply *update* to the current settings and persist the result.

        Args:
            update: Receives the current settings and returns the new ones.
                Returning the same object still rewrites the file.

        Returns:
            The settings as written.
        """
        settings = update(self.read_settings())
        data = settings.model_dump(mode="json")
        atomic_write(self._path, json.dumps(data, indent=2) + "\n")
        return settings

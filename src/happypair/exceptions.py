"""Exception hierarchy for happypair.

All exceptions inherit from :class:`HappyPairError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`happypair.exit_codes`.
The top-level error handler in :func:`happypair.app.main` catches
``HappyPairError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    HappyPairError (exit 1)
    +-- AuthError           (exit 3)
    +-- ServerStatusError   (exit 5)
    +-- TransportError      (exit 6)
    +-- ResponseParseError  (exit 1)
    +-- ConfigError         (exit 1)

A payload that cannot be decrypted and a cancelled pairing are *not*
exceptions: the orchestrator reports them as outcomes without credentials.
"""

from happypair.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_SERVER_ERROR,
)


class HappyPairError(Exception):
    """Base exception for all happypair errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`happypair.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class AuthError(HappyPairError):
    """Raised when authentication produced no credentials."""

    exit_code = EXIT_AUTH_FAILURE


class ServerStatusError(HappyPairError):
    """Raised when the server answers the auth request with a status other than 200.

    Args:
        message: Formatted description including the status code.
        status: The HTTP status code that was received.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class TransportError(HappyPairError):
    """Raised when no HTTP response was obtained (timeout, DNS, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class ResponseParseError(HappyPairError):
    """Raised when a 200 response body is not a JSON object."""


class ConfigError(HappyPairError):
    """Raised for unreadable or invalid settings and credential files."""

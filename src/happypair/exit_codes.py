"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~happypair.exceptions.HappyPairError` subclass.
Shell wrappers can inspect the exit code to tell an unreachable server
from a rejected request without parsing stderr.

Example::

    $ happypair auth login
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the Happy server could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully (also used for a user cancellation)."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed or produced no credentials."""

EXIT_SERVER_ERROR = 5
"""The Happy server answered with a status other than 200."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C outside the pairing loop."""

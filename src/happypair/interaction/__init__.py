"""Terminal-facing collaborators of the pairing handshake.

These are thin I/O wrappers kept apart from :mod:`happypair.auth` so the
handshake can be driven by fakes in tests:

- :func:`select_auth_method` -- asks mobile or web, ``None`` on cancel.
- :func:`render_qr` -- turns a URL into terminal-printable QR text.
- :func:`open_browser` -- best-effort browser launch.
- :class:`TerminalPresenter` -- shows either approval surface.
"""

from happypair.interaction.browser import open_browser
from happypair.interaction.presenter import PairingPresenter, TerminalPresenter
from happypair.interaction.qr import render_qr
from happypair.interaction.selector import select_auth_method

__all__ = [
    "PairingPresenter",
    "TerminalPresenter",
    "open_browser",
    "render_qr",
    "select_auth_method",
]

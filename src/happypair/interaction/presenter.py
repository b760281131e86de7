"""Displays the approval surface for the chosen method.

:class:`PairingPresenter` is the seam the orchestrator talks to;
:class:`TerminalPresenter` is the implementation used by the CLI.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from happypair.interaction.browser import open_browser as _open_browser
from happypair.interaction.qr import render_qr as _render_qr
from happypair.output import get_output, info, success, warning


class PairingPresenter(ABC):
    """Shows the user where to approve the pairing request."""

    @abstractmethod
    def show_mobile(self, url: str) -> None:
        """Present the mobile deep link."""
        ...

    @abstractmethod
    def show_web(self, url: str) -> None:
        """Present the web pairing page."""
        ...


class TerminalPresenter(PairingPresenter):
    """Render QR codes and open browsers in the current terminal.

    Args:
        render_qr: Turns a URL into printable QR text.
        open_browser: Launches a browser, returning ``False`` on failure.
    """

    def __init__(
        self,
        render_qr: Callable[[str], str] = _render_qr,
        open_browser: Callable[[str], bool] = _open_browser,
    ) -> None:
        self._render_qr = render_qr
        self._open_browser = open_browser

    def show_mobile(self, url: str) -> None:
        info("\nMobile Authentication\n")
        get_output().panel(self._render_qr(url), "Scan with the Happy mobile app")
        info("\nOr manually enter this URL:")
        info(url)
        info("")

    def show_web(self, url: str) -> None:
        info("\nWeb Authentication\n")
        info("Opening your browser...")

        if self._open_browser(url):
            success("✓ Browser opened\n")
            info("Complete authentication in your browser window.")
        else:
            warning("Could not open browser automatically.")

        # Always shown: devcontainers can report success with no visible browser.
        info("\nIf the browser did not open, please copy and paste this URL:")
        info(url)
        info("")

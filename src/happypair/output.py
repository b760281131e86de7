"""Terminal output for happypair.

stdout carries only machine-readable documents (``auth status --json``).
Everything a person reads while pairing goes to stderr: progress, the QR
code, pairing URLs, warnings and errors. A pipe never receives pairing
instructions, and a pairing URL is never mixed into parsed output.

Colour follows ``NO_COLOR``, ``TERM=dumb`` and ``--no-color``. In plain mode
text is written with :func:`print` so QR blocks and URLs stay byte-exact.

:class:`OutputManager` is built once per CLI run in
:func:`~happypair.app.main_callback` and installed with :func:`set_output`;
library code reaches it through :func:`get_output` or the module-level
helpers (:func:`info`, :func:`error`, ...). Debug diagnostics are not part
of this layer: they go through :mod:`logging` (see
:func:`happypair.app._configure_logging`).
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text


class OutputManager:
    """Per-run output settings and the stderr console.

    Args:
        no_color: Disable colour and styling.
        quiet: Hide progress and pairing chatter. Warnings and errors are
            still printed.
        json_mode: Commands print a JSON document on stdout instead of prose.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        json_mode: bool = False,
    ) -> None:
        self._plain = no_color or _color_disabled_by_env()
        self._quiet = quiet
        self._json_mode = json_mode
        self._console = Console(file=sys.stderr, stderr=True, no_color=self._plain)

    @property
    def json_mode(self) -> bool:
        return self._json_mode

    @property
    def console(self) -> Console:
        """The stderr console, shared with the ``--verbose`` log handler."""
        return self._console

    # --- stdout ---

    def emit_json(self, document: Any) -> None:
        """Write *document* to stdout as indented JSON."""
        print(json.dumps(document, indent=2, ensure_ascii=False), file=sys.stdout, flush=True)

    # --- stderr ---

    def info(self, message: str) -> None:
        self._emit(message, Text(message))

    def success(self, message: str) -> None:
        self._emit(message, Text(message, style="green"))

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._emit(
            f"Warning: {message}",
            Text.assemble(("Warning: ", "yellow"), message),
            always=True,
        )

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self._emit(
            f"Error: {message}",
            Text.assemble(("Error: ", "bold red"), message),
            always=True,
        )

    def suggest(self, message: str) -> None:
        """A next step for the user, e.g. which command to run."""
        self._emit(f"→ {message}", Text(f"→ {message}", style="dim"))

    def status_line(self, message: str) -> None:
        """Redraw the current stderr line with *message*.

        Drives the "Waiting for authentication..." indicator. Only drawn on a
        terminal, and never in quiet mode.
        """
        if self._quiet or not _is_stderr_tty():
            return
        sys.stderr.write(f"\r{message}")
        sys.stderr.flush()

    def panel(self, body: str, title: str) -> None:
        """Show *body* (a QR code) under *title*.

        Plain mode prints the title and body as-is so the QR block is not
        re-wrapped.
        """
        if self._quiet:
            return
        if self._plain:
            print(title, file=sys.stderr, flush=True)
            print(body, file=sys.stderr, flush=True)
            return
        self._console.print(
            Panel(
                Text(body, justify="center"),
                title=f"[bold cyan]{title}[/bold cyan]",
                border_style="cyan",
                expand=False,
            )
        )

    def _emit(self, plain: str, styled: Text, always: bool = False) -> None:
        if self._quiet and not always:
            return
        if self._plain:
            print(plain, file=sys.stderr, flush=True)
        else:
            # No wrapping: pairing URLs must stay on one line.
            self._console.print(styled, soft_wrap=True)


def _is_stderr_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def _color_disabled_by_env() -> bool:
    """``NO_COLOR`` set to anything, or ``TERM=dumb`` (clig.dev)."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# --- Global instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed instance. Test suites call this between tests."""
    global _output
    _output = None


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)

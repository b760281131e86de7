"""Authentication method selection."""

from __future__ import annotations

import signal
from typing import Optional

import click
import typer

from happypair.models import AuthMethod
from happypair.output import info

_CHOICES: dict[str, AuthMethod] = {
    "1": AuthMethod.MOBILE,
    "2": AuthMethod.WEB,
}


def select_auth_method() -> Optional[AuthMethod]:
    """Ask the user how they want to approve this terminal.

    Returns:
        The chosen :class:`~happypair.models.AuthMethod`, or ``None`` when
        the prompt is cancelled (Ctrl-C or end of input).
    """
    info("How would you like to authenticate?")
    info("  1. Mobile app (scan a QR code)")
    info("  2. Web browser")
    # Ctrl-C must reach click as KeyboardInterrupt, whatever handler the app installed.
    previous = signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        choice = typer.prompt(
            "Select method",
            default="1",
            type=click.Choice(list(_CHOICES)),
            show_choices=False,
        )
    except (click.exceptions.Abort, KeyboardInterrupt, EOFError):
        return None
    finally:
        signal.signal(signal.SIGINT, previous)
    return _CHOICES[choice]

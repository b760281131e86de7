"""Typer application factory and CLI entry point for happypair.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers, registers commands, and
invokes the Typer app. :class:`~happypair.exceptions.HappyPairError`
instances exit with their ``exit_code``; unexpected exceptions are written
to a crash log under the data directory.

See Also:
    :mod:`happypair.config`: Endpoint resolution used by the commands.
    :mod:`happypair.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from happypair import __version__
from happypair.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="happypair",
    help="Pair this terminal with the Happy mobile app or web app.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from happypair.commands.auth import auth_app  # noqa: E402

app.add_typer(auth_app, name="auth", help="Pair this terminal and manage credentials.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"happypair {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route ``happypair.*`` loggers to stderr through Rich when verbose."""
    from happypair.output import get_output

    logger = logging.getLogger("happypair")
    logger.handlers.clear()
    if verbose:
        handler = RichHandler(console=get_output().console, show_path=False)
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    server_url: Optional[str] = typer.Option(
        None, "--server-url", help="Happy API server URL (overrides HAPPY_SERVER_URL)."
    ),
    webapp_url: Optional[str] = typer.Option(
        None, "--webapp-url", help="Happy web app URL (overrides HAPPY_WEBAPP_URL)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~happypair.output.OutputManager` and
    logging from CLI flags, and stores shared options in ``ctx.obj``.
    """
    from happypair.output import OutputManager, set_output

    output = OutputManager(no_color=no_color, quiet=quiet, json_mode=json_output)
    set_output(output)
    _configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["server_url"] = server_url
    ctx.obj["webapp_url"] = webapp_url


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from happypair.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``happypair`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from happypair.exceptions import HappyPairError
        from happypair.output import error

        if isinstance(exc, HappyPairError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)

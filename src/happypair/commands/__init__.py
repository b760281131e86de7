"""Built-in CLI sub-command groups mounted on the root Typer app in :mod:`happypair.app`."""

"""Auth commands -- pair this terminal and inspect stored credentials.

Provides the ``happypair auth`` sub-command group.

Typical workflow::

    happypair auth login     # pair with the mobile app or a browser
    happypair auth status    # which credential shape is stored
    happypair auth logout    # forget the stored credentials
"""

from __future__ import annotations

from typing import Any

import typer

from happypair.output import get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


def _opts(ctx: typer.Context) -> dict[str, Any]:
    return ctx.obj if isinstance(ctx.obj, dict) else {}


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Discard stored credentials and pair again."
    ),
) -> None:
    """Pair this terminal and make sure a machine id exists.

    Reuses stored credentials unless ``--force`` is given. Errors such as
    an unreachable server propagate to :func:`happypair.app.main`, which
    maps them to exit codes.

    Example::

        happypair auth login
        happypair --server-url http://localhost:3005 auth login --force
    """
    from happypair.auth import auth_and_setup_machine_if_needed
    from happypair.persistence import CredentialStore

    opts = _opts(ctx)
    store = CredentialStore()
    if force and store.clear():
        info("Removed stored credentials.")

    credentials, machine_id = auth_and_setup_machine_if_needed(
        server_url=opts.get("server_url"),
        webapp_url=opts.get("webapp_url"),
        credential_store=store,
    )
    success(f"Authenticated ({credentials.type} credentials).")
    info(f"Machine ID: {machine_id}")


@auth_app.command("status")
def auth_status() -> None:
    """Show whether credentials are stored, without revealing secrets.

    Exits with code 3 when no credentials are stored.
    """
    from happypair.exit_codes import EXIT_AUTH_FAILURE
    from happypair.persistence import CredentialStore, SettingsStore

    store = CredentialStore()
    credentials = store.read_credentials()
    settings = SettingsStore().read_settings()

    if get_output().json_mode:
        get_output().emit_json(
            {
                "authenticated": credentials is not None,
                "type": credentials.type if credentials else None,
                "machine_id": settings.machine_id,
                "path": str(store.path),
            }
        )
    elif credentials is None:
        info("Not authenticated.")
        suggest("Pair this terminal: happypair auth login")
    else:
        success(f"Authenticated with {credentials.type} credentials.")
        info(f"Credentials: {store.path}")
        info(f"Machine ID: {settings.machine_id or '(not set)'}")

    if credentials is None:
        raise typer.Exit(code=EXIT_AUTH_FAILURE)


@auth_app.command("logout")
def auth_logout() -> None:
    """Remove the stored credentials."""
    from happypair.persistence import CredentialStore

    if CredentialStore().clear():
        success("Logged out.")
    else:
        info("No stored credentials.")

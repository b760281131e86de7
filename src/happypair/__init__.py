"""happypair -- pair a terminal with a trusted device to obtain credentials.

The terminal never sees a password. Instead it generates an ephemeral NaCl
box keypair, registers the public half with the Happy server, and shows the
user a QR code (for the mobile app) or a web URL. Once the user approves on the
other device, the server hands back an encrypted credential bundle that only
the ephemeral secret key can open.

Typical workflow::

    happypair auth login     # pair and persist credentials
    happypair auth status    # show which credential shape is stored

Modules:
    app: Typer application factory and CLI entry point.
    auth: The pairing handshake orchestrator and machine setup.
    client: HTTP client for the auth request endpoint.
    crypto: NaCl box helpers and base64 encoders.
    decoder: Turns an approved payload into stored credentials.
    pairing: Deep link and web URL construction.
    models: Pydantic models shared across the package.
    config: XDG-aware paths, endpoint resolution, atomic writes.
    persistence: Credential and settings storage.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

"""Pairing handshake orchestration and machine setup.

Flow of one attempt (:meth:`AuthOrchestrator.run`)::

    SELECTING_METHOD -> CREATING_REQUEST
        -> AWAITING_MOBILE_APPROVAL | AWAITING_WEB_APPROVAL
        -> POLLING -> AUTHORIZED | DECODE_FAILED | CANCELLED

1. The user picks the mobile app or the web browser. Cancelling here ends
   the attempt before any request is sent.
2. A fresh ephemeral keypair is generated and one auth request is created.
   A transport or status failure here propagates; there is no retry.
3. The approval surface is shown: a QR code plus deep link, or a browser
   window plus the plain URL.
4. The request is polled once per ``poll_interval`` until it is authorized,
   a request fails, or the cancellation token fires. The token is observed
   during the delay between requests and again when a request returns, so
   no request is sent and no credentials are stored after cancellation.

The keypair lives only inside :meth:`~AuthOrchestrator.run`; every call
starts from a new keypair and a fresh polling state.

:func:`do_auth` wires the orchestrator to the terminal, turning Ctrl-C into
a cancellation for the duration of polling. :func:`auth_and_setup_machine_if_needed`
is the entry point used by the CLI.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import signal
import sys
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Iterator, Optional

import httpx

from happypair.client import AuthClient
from happypair.config import resolve_server_url, resolve_webapp_url
from happypair.crypto import Keypair, generate_keypair, random_bytes
from happypair.decoder import decode_credentials
from happypair.exceptions import AuthError, ConfigError
from happypair.exit_codes import EXIT_SUCCESS
from happypair.interaction import PairingPresenter, TerminalPresenter, select_auth_method
from happypair.models import AuthMethod, Credentials, LegacyCredentials, Settings
from happypair.output import error, get_output, info, success
from happypair.pairing import mobile_url, web_url
from happypair.persistence import CredentialStore, SettingsStore

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0
"""Seconds between consecutive auth requests while waiting for approval."""


class AuthState(str, enum.Enum):
    """States of one pairing attempt."""

    SELECTING_METHOD = "selecting_method"
    CREATING_REQUEST = "creating_request"
    AWAITING_MOBILE_APPROVAL = "awaiting_mobile_approval"
    AWAITING_WEB_APPROVAL = "awaiting_web_approval"
    POLLING = "polling"
    AUTHORIZED = "authorized"
    DECODE_FAILED = "decode_failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AuthOutcome:
    """How an attempt ended. ``credentials`` is set only when AUTHORIZED."""

    state: AuthState
    credentials: Optional[Credentials] = None


class CancellationToken:
    """A one-way cancellation flag that can be waited on.

    Example::

        token = CancellationToken()
        if token.wait(1.0):   # sleeps up to 1s, returns early when cancelled
            return
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def wait(self, timeout: float) -> bool:
        """Block up to *timeout* seconds; return ``True`` if cancelled."""
        return self._event.wait(timeout)


@contextlib.contextmanager
def interrupt_cancels(token: CancellationToken) -> Iterator[CancellationToken]:
    """Turn SIGINT into ``token.cancel()`` while the block runs.

    The previous handler is restored on exit. A second Ctrl-C while the
    token is already cancelled raises :class:`KeyboardInterrupt`, which
    aborts a request that is still in flight.
    """

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        if token.cancelled:
            raise KeyboardInterrupt
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)


def _no_interrupt_scope(token: CancellationToken) -> ContextManager[Any]:
    return contextlib.nullcontext(token)


class AuthOrchestrator:
    """Drive one pairing attempt from method selection to credentials.

    Args:
        client: An open :class:`~happypair.client.AuthClient`.
        store: Receives the credentials once they are decoded.
        selector: Returns the chosen method, or ``None`` to cancel.
        presenter: Shows the approval surface.
        webapp_url: Base URL of the web pairing page.
        poll_interval: Seconds to wait before each poll request.
        cancel_token: Cancels polling when fired.
        interrupt_scope: Context manager factory entered around polling,
            e.g. :func:`interrupt_cancels`.
        seed_factory: Source of the 32-byte keypair seed.
        machine_key_factory: Source of data-key machine keys.
    """

    def __init__(
        self,
        client: AuthClient,
        store: CredentialStore,
        selector: Callable[[], Optional[AuthMethod]] = select_auth_method,
        presenter: Optional[PairingPresenter] = None,
        webapp_url: Optional[str] = None,
        poll_interval: float = POLL_INTERVAL,
        cancel_token: Optional[CancellationToken] = None,
        interrupt_scope: Callable[[CancellationToken], ContextManager[Any]] = _no_interrupt_scope,
        seed_factory: Callable[[], bytes] = random_bytes,
        machine_key_factory: Callable[[], bytes] = random_bytes,
    ) -> None:
        self._client = client
        self._store = store
        self._selector = selector
        self._presenter = presenter or TerminalPresenter()
        self._webapp_url = webapp_url or resolve_webapp_url()
        self._poll_interval = poll_interval
        self._cancel_token = cancel_token or CancellationToken()
        self._interrupt_scope = interrupt_scope
        self._seed_factory = seed_factory
        self._machine_key_factory = machine_key_factory
        self.state = AuthState.SELECTING_METHOD

    def run(self) -> AuthOutcome:
        """Run the attempt to a terminal state.

        Returns:
            An :class:`AuthOutcome`. Only ``AUTHORIZED`` carries credentials.

        Raises:
            TransportError: If the server could not be reached.
            ServerStatusError: If the server answered with a status other
                than 200.
            ResponseParseError: If a 200 body was not a JSON object.
        """
        self._transition(AuthState.SELECTING_METHOD)
        method = self._selector()
        if method is None:
            return self._finish(AuthState.CANCELLED)

        self._transition(AuthState.CREATING_REQUEST)
        keypair = generate_keypair(self._seed_factory())
        info("Creating authentication request...")
        self._client.create_request(keypair.public_key)
        info("Authentication request created.")

        if method is AuthMethod.MOBILE:
            self._transition(AuthState.AWAITING_MOBILE_APPROVAL)
            self._presenter.show_mobile(mobile_url(keypair.public_key))
        else:
            self._transition(AuthState.AWAITING_WEB_APPROVAL)
            self._presenter.show_web(web_url(keypair.public_key, self._webapp_url))

        with self._interrupt_scope(self._cancel_token):
            return self._poll(keypair)

    def _poll(self, keypair: Keypair) -> AuthOutcome:
        """Poll until authorized or cancelled. Request failures propagate."""
        self._transition(AuthState.POLLING)
        output = get_output()
        dots = 0

        while True:
            output.status_line("Waiting for authentication" + "." * (dots % 3 + 1) + "   ")
            dots += 1

            if self._cancel_token.wait(self._poll_interval):
                return self._finish(AuthState.CANCELLED)

            status = self._client.poll_request(keypair.public_key)
            # Ctrl-C during the request wins over whatever the server answered.
            if self._cancel_token.cancelled:
                return self._finish(AuthState.CANCELLED)
            if not status.is_authorized:
                if status.state != "pending":
                    logger.debug("Unrecognised auth request state %r, still waiting", status.state)
                continue

            credentials = decode_credentials(status, keypair, self._machine_key_factory)
            if credentials is None:
                return self._finish(AuthState.DECODE_FAILED)

            self._persist(credentials)
            return self._finish(AuthState.AUTHORIZED, credentials)

    def _persist(self, credentials: Credentials) -> None:
        if isinstance(credentials, LegacyCredentials):
            self._store.write_legacy(credentials.secret, credentials.token)
        else:
            self._store.write_data_key(
                credentials.public_key, credentials.machine_key, credentials.token
            )

    def _transition(self, state: AuthState) -> None:
        logger.debug("Auth state: %s -> %s", self.state.value, state.value)
        self.state = state

    def _finish(
        self, state: AuthState, credentials: Optional[Credentials] = None
    ) -> AuthOutcome:
        self._transition(state)
        return AuthOutcome(state=state, credentials=credentials)


def do_auth(
    server_url: Optional[str] = None,
    webapp_url: Optional[str] = None,
    store: Optional[CredentialStore] = None,
    selector: Callable[[], Optional[AuthMethod]] = select_auth_method,
    presenter: Optional[PairingPresenter] = None,
    transport: Optional[httpx.BaseTransport] = None,
    poll_interval: float = POLL_INTERVAL,
) -> Optional[Credentials]:
    """Run the interactive pairing handshake in this terminal.

    Ctrl-C during polling cancels the attempt. A cancelled attempt prints a
    notice and exits the process with status 0; there is nothing worth
    keeping from a half-finished handshake.

    Args:
        server_url: Override for the API server URL.
        webapp_url: Override for the web app URL.
        store: Credential destination. Defaults to the user's data directory.
        selector: Method selection prompt.
        presenter: Approval surface renderer.
        transport: Optional httpx transport for the auth client.
        poll_interval: Seconds between poll requests.

    Returns:
        The persisted credentials, or ``None`` if the approved payload could
        not be decrypted.

    Raises:
        TransportError: If the server could not be reached.
        ServerStatusError: If the server answered with a status other than 200.
    """
    store = store or CredentialStore()
    token = CancellationToken()

    with AuthClient(resolve_server_url(server_url), transport=transport) as client:
        orchestrator = AuthOrchestrator(
            client,
            store,
            selector=selector,
            presenter=presenter,
            webapp_url=resolve_webapp_url(webapp_url),
            poll_interval=poll_interval,
            cancel_token=token,
            interrupt_scope=interrupt_cancels,
        )
        outcome = orchestrator.run()

    if outcome.state is AuthState.CANCELLED:
        info("\n\nAuthentication cancelled.\n")
        sys.exit(EXIT_SUCCESS)

    if outcome.state is AuthState.DECODE_FAILED:
        error("\nFailed to decrypt response. Please try again.")
        return None

    success("\n✓ Authentication successful\n")
    return outcome.credentials


def _new_machine_id() -> str:
    return str(uuid.uuid4())


def auth_and_setup_machine_if_needed(
    server_url: Optional[str] = None,
    webapp_url: Optional[str] = None,
    credential_store: Optional[CredentialStore] = None,
    settings_store: Optional[SettingsStore] = None,
    authenticate: Optional[Callable[[], Optional[Credentials]]] = None,
) -> tuple[Credentials, str]:
    """Make sure this machine has credentials and a machine id.

    Existing credentials are reused. Otherwise the pairing handshake runs.
    A new random machine id is generated when authentication was just
    performed or when none has been stored yet.

    Args:
        server_url: Override for the API server URL.
        webapp_url: Override for the web app URL.
        credential_store: Where credentials are read and written.
        settings_store: Where the machine id is kept.
        authenticate: Replaces :func:`do_auth` (used in tests).

    Returns:
        A ``(credentials, machine_id)`` tuple.

    Raises:
        AuthError: If the handshake produced no credentials.
        ConfigError: If the settings store did not keep the machine id.
    """
    credential_store = credential_store or CredentialStore()
    settings_store = settings_store or SettingsStore()
    logger.debug("Starting auth and machine setup")

    credentials = credential_store.read_credentials()
    new_auth = False

    if credentials is None:
        logger.debug("No credentials found, starting authentication flow")
        if authenticate is None:
            credentials = do_auth(server_url, webapp_url, store=credential_store)
        else:
            credentials = authenticate()
        if credentials is None:
            raise AuthError("Authentication failed or was cancelled")
        new_auth = True
    else:
        logger.debug("Using existing credentials")

    def _ensure_machine_id(settings: Settings) -> Settings:
        if new_auth or not settings.machine_id:
            return settings.model_copy(update={"machine_id": _new_machine_id()})
        return settings

    settings = settings_store.update_settings(_ensure_machine_id)
    if not settings.machine_id:
        raise ConfigError(f"No machine id stored in {settings_store.path}")
    logger.debug("Machine ID: %s", settings.machine_id)

    return credentials, settings.machine_id

"""HTTP client for the Happy auth request endpoint.

Every call is a single ``POST {server_url}/v1/auth/request`` carrying the
terminal's public key. The server treats a repeated request for the same key
idempotently, so the same call both creates the pairing request and polls it.

Responses are classified explicitly rather than through
``raise_for_status``:

- no response at all (DNS, connect, timeout) -> :class:`TransportError`
- any status other than 200 -> :class:`ServerStatusError`
- 200 -> :class:`~happypair.models.AuthRequestStatus`

The client never retries. Repetition and pacing belong to the caller's
polling loop in :mod:`happypair.auth`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from happypair.crypto import encode_base64
from happypair.exceptions import ResponseParseError, ServerStatusError, TransportError
from happypair.models import AuthRequestStatus

logger = logging.getLogger(__name__)

AUTH_REQUEST_PATH = "/v1/auth/request"
REQUEST_TIMEOUT = 60.0

CREATE_HINT = (
    "If you use a custom server URL in the mobile app, "
    "set HAPPY_SERVER_URL to match and retry."
)
RETRY_HINT = "Please try again later."


def format_auth_request_failure(status: Optional[int]) -> str:
    """Describe a failed auth request for the user.

    Args:
        status: The HTTP status received, or ``None`` when the server could
            not be reached at all.
    """
    if not status:
        return "Failed to reach the Happy server."
    if status == 404:
        return (
            "Happy server returned HTTP 404. The server URL may be wrong, "
            "or Happy's backend may be down."
        )
    return f"Happy server returned HTTP {status}."


class AuthClient:
    """Client for creating and polling pairing requests.

    Must be used as a context manager so the underlying
    :class:`httpx.Client` is opened and closed.

    Args:
        server_url: Base URL of the Happy API server.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        with AuthClient("https://api.cluster-fluster.com") as client:
            status = client.create_request(keypair.public_key)
    """

    def __init__(
        self,
        server_url: str,
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._server_url = server_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def server_url(self) -> str:
        return self._server_url

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AuthClient:
        self._client = httpx.Client(
            base_url=self._server_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def create_request(self, public_key: bytes) -> AuthRequestStatus:
        """Register a pairing request for *public_key*.

        Raises:
            TransportError: If the server could not be reached.
            ServerStatusError: On any status other than 200. The message
                points at ``HAPPY_SERVER_URL`` as the likely culprit.
            ResponseParseError: If the 200 body is not a JSON object.
        """
        return self._post_request(public_key, CREATE_HINT, "create auth request")

    def poll_request(self, public_key: bytes) -> AuthRequestStatus:
        """Fetch the current state of the pairing request for *public_key*.

        Raises:
            TransportError: If the server could not be reached.
            ServerStatusError: On any status other than 200.
            ResponseParseError: If the 200 body is not a JSON object.
        """
        return self._post_request(public_key, RETRY_HINT, "poll auth status")

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _post_request(self, public_key: bytes, hint: str, action: str) -> AuthRequestStatus:
        """Send one auth request and classify the outcome."""
        if self._client is None:
            raise RuntimeError("AuthClient must be used as a context manager")

        payload: dict[str, Any] = {
            "publicKey": encode_base64(public_key),
            "supportsV2": True,
        }

        try:
            response = self._client.post(AUTH_REQUEST_PATH, json=payload)
        except httpx.HTTPError as exc:
            logger.debug("Failed to %s: %s", action, exc)
            raise TransportError(
                f"{format_auth_request_failure(None)} {RETRY_HINT}"
            ) from exc

        if response.status_code != 200:
            logger.debug(
                "Failed to %s: status=%s reason=%s body=%s",
                action,
                response.status_code,
                response.reason_phrase,
                response.text[:200],
            )
            raise ServerStatusError(
                f"{format_auth_request_failure(response.status_code)} {hint}",
                status=response.status_code,
            )

        try:
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"expected a JSON object, got {type(data).__name__}")
            return AuthRequestStatus.model_validate(data)
        except (ValueError, ValidationError) as exc:
            logger.debug("Invalid auth response payload: %s", exc)
            raise ResponseParseError(
                "Failed to parse authentication response. Please try again."
            ) from exc

"""Turn an approved auth response into stored credentials.

The decrypted payload selects the credential shape:

- exactly 32 bytes: a legacy shared secret.
- any other length with a leading ``0x00`` byte: a data-key payload whose
  bytes ``[1:33]`` are the approver's public key. The machine key paired
  with it is generated locally.
- anything else: not a credential.

A payload that cannot be decoded is reported as ``None``. Retrying would
not help: the bundle will not become valid, and the ephemeral secret key is
single-use.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from happypair.crypto import KEY_SIZE, Keypair, decode_base64, open_bundle, random_bytes
from happypair.models import (
    AuthRequestStatus,
    Credentials,
    DataKeyCredentials,
    LegacyCredentials,
)

logger = logging.getLogger(__name__)

DATA_KEY_VERSION = 0


def decode_credentials(
    status: AuthRequestStatus,
    keypair: Keypair,
    machine_key_factory: Callable[[], bytes] = random_bytes,
) -> Optional[Credentials]:
    """Decrypt an authorized response into a credential variant.

    Args:
        status: A 200 response body whose ``state`` is ``"authorized"``.
        keypair: The keypair that created the pairing request.
        machine_key_factory: Source of the fresh 32-byte machine key for
            data-key credentials.

    Returns:
        :class:`LegacyCredentials` or :class:`DataKeyCredentials`, or
        ``None`` if the payload is missing, malformed, fails authentication,
        or has an unknown shape.
    """
    if not status.response or status.token is None:
        logger.debug("Authorized response is missing 'response' or 'token'")
        return None

    try:
        bundle = decode_base64(status.response)
    except ValueError as exc:
        logger.debug("Authorized response is not valid base64: %s", exc)
        return None

    payload = open_bundle(bundle, keypair.secret_key)
    if payload is None:
        logger.debug("Encrypted bundle failed authentication")
        return None

    if len(payload) == KEY_SIZE:
        return LegacyCredentials(secret=payload, token=status.token)

    if payload[:1] == bytes([DATA_KEY_VERSION]) and len(payload) >= 1 + KEY_SIZE:
        return DataKeyCredentials(
            public_key=payload[1 : 1 + KEY_SIZE],
            machine_key=machine_key_factory(),
            token=status.token,
        )

    logger.debug(
        "Unknown credential payload: length=%d first byte=%r", len(payload), payload[:1]
    )
    return None

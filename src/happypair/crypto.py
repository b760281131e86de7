"""NaCl box primitives for the pairing handshake.

The terminal owns one ephemeral Curve25519 keypair per pairing attempt.
The approving device answers with an *encrypted bundle*::

    ephemeral_public_key (32) || nonce (24) || ciphertext (rest)

where ``ciphertext`` is a ``crypto_box`` (X25519 + XSalsa20-Poly1305) of the
credential payload, keyed by the approver's own ephemeral key and the
terminal's public key. The byte offsets are a wire invariant shared with the
mobile and web clients.

Base64 helpers live here too because every key crosses the wire as text.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Optional

import nacl.utils
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey

KEY_SIZE = 32
NONCE_SIZE = Box.NONCE_SIZE
BUNDLE_HEADER_SIZE = KEY_SIZE + NONCE_SIZE


@dataclass(frozen=True)
class Keypair:
    """A box keypair owned by a single pairing attempt. Never persisted."""

    public_key: bytes
    secret_key: bytes = field(repr=False)


def random_bytes(size: int = KEY_SIZE) -> bytes:
    """Return *size* bytes from the operating system CSPRNG."""
    return nacl.utils.random(size)


def generate_keypair(seed: bytes) -> Keypair:
    """Derive a box keypair from a 32-byte secret seed.

    The transform is deterministic: the seed *is* the Curve25519 secret key
    and the public key is its scalar multiple of the base point.

    Args:
        seed: 32 bytes of secure randomness.

    Returns:
        The :class:`Keypair` for *seed*.

    Raises:
        ValueError: If *seed* is not exactly 32 bytes.
    """
    if len(seed) != KEY_SIZE:
        raise ValueError(f"Seed must be {KEY_SIZE} bytes, got {len(seed)}")

    private_key = PrivateKey(bytes(seed))
    return Keypair(
        public_key=bytes(private_key.public_key),
        secret_key=bytes(private_key),
    )


def open_bundle(bundle: bytes, secret_key: bytes) -> Optional[bytes]:
    """Decrypt an encrypted bundle addressed to *secret_key*.

    Args:
        bundle: ``ephemeral_public_key || nonce || ciphertext``.
        secret_key: The recipient's 32-byte secret key.

    Returns:
        The plaintext, or ``None`` when the bundle fails authentication
        (tampered, truncated, or sealed for a different key). ``None`` means
        the payload cannot be trusted; it is not a transport error.
    """
    if len(bundle) < BUNDLE_HEADER_SIZE:
        return None

    ephemeral_public_key = bundle[:KEY_SIZE]
    nonce = bundle[KEY_SIZE:BUNDLE_HEADER_SIZE]
    ciphertext = bundle[BUNDLE_HEADER_SIZE:]

    box = Box(PrivateKey(secret_key), PublicKey(ephemeral_public_key))
    try:
        return box.decrypt(ciphertext, nonce)
    except CryptoError:
        return None


def seal_bundle(
    plaintext: bytes,
    recipient_public_key: bytes,
    ephemeral_seed: Optional[bytes] = None,
    nonce: Optional[bytes] = None,
) -> bytes:
    """Build an encrypted bundle the way the approving device does.

    Args:
        plaintext: Credential payload to encrypt.
        recipient_public_key: The terminal's 32-byte public key.
        ephemeral_seed: Seed for the sender's ephemeral keypair. Random
            when omitted.
        nonce: 24-byte nonce. Random when omitted.

    Returns:
        ``ephemeral_public_key || nonce || ciphertext``.
    """
    sender = generate_keypair(ephemeral_seed or random_bytes(KEY_SIZE))
    nonce = nonce or random_bytes(NONCE_SIZE)

    box = Box(PrivateKey(sender.secret_key), PublicKey(recipient_public_key))
    encrypted = box.encrypt(plaintext, nonce)
    return sender.public_key + nonce + encrypted.ciphertext


# --- Base64 ---


def encode_base64(data: bytes) -> str:
    """Standard base64 with padding."""
    return base64.b64encode(data).decode("ascii")


def decode_base64(text: str) -> bytes:
    """Decode standard base64, rejecting non-alphabet characters.

    Raises:
        ValueError: If *text* is not valid base64.
    """
    return base64.b64decode(text, validate=True)


def encode_base64_url(data: bytes) -> str:
    """URL-safe base64 without ``=`` padding, as used in deep links."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")

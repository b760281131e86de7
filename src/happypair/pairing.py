"""Approval surfaces shown to the user while the terminal waits.

Both URLs carry only the terminal's *public* key, so they are safe to print
and to render as a QR code.
"""

from __future__ import annotations

from happypair.crypto import encode_base64_url

MOBILE_URL_PREFIX = "happy://terminal?"


def mobile_url(public_key: bytes) -> str:
    """Deep link scanned by the Happy mobile app.

    The URL-safe base64 public key is the entire query string.
    """
    return MOBILE_URL_PREFIX + encode_base64_url(public_key)


def web_url(public_key: bytes, webapp_url: str) -> str:
    """Pairing page of the Happy web app for *public_key*.

    The key is carried in the URL fragment.
    """
    return f"{webapp_url.rstrip('/')}/terminal/connect#key={encode_base64_url(public_key)}"

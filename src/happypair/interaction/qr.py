"""Terminal QR code rendering."""

from __future__ import annotations

from io import StringIO

import qrcode


def render_qr(data: str) -> str:
    """Render *data* as a QR code made of Unicode half blocks.

    Args:
        data: The text to encode, typically the mobile deep link.

    Returns:
        Multi-line text suitable for printing to a terminal.
    """
    qr = qrcode.QRCode(border=1)
    qr.add_data(data)
    qr.make(fit=True)

    buffer = StringIO()
    qr.print_ascii(out=buffer, invert=True)
    return buffer.getvalue()

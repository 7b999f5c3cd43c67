from __future__ import annotations

import io

import qrcode


def render_ticket_qr(status_url: str) -> bytes:
    """PNG QR code pointing at a ticket's status URL."""

    img = qrcode.make(status_url)
    buf = io.BytesIO()
    img.save(buf)
    return buf.getvalue()

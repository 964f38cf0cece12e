"""
commentscore.engine.codec — URL-Safe Base64 Text Transcoding
=============================================================

Chat clients send ``message_text`` as URL-safe base64 (``-``/``_`` instead
of ``+``/``/``, padding stripped) so arbitrary UTF-8 survives transport.
Media-only posts arrive as a literal ``base64(...)`` marker with no text.
"""

from __future__ import annotations

import base64
import binascii
import re

from commentscore.errors import DecodeError

_MARKER_RE = re.compile(r"^base64\(", re.IGNORECASE)


def encode_text(text: str) -> str:
    """UTF-8 → URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def decode_text(encoded: str) -> str:
    """URL-safe base64 (padding optional) → UTF-8 text.

    Raises :class:`DecodeError` for characters outside the alphabet, a
    bad length, or bytes that are not UTF-8.
    """
    stripped = encoded.strip().rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        # UnicodeDecodeError is a ValueError
        raise DecodeError(f"Not URL-safe base64 text: {exc}") from exc


def is_base64_marker(text: str) -> bool:
    """True for the raw ``base64(`` placeholder sent for media-only posts."""
    return bool(_MARKER_RE.match(text))

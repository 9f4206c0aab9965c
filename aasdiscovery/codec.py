# aasdiscovery/codec.py
"""
Unpadded base64url codec for AAS identifiers.

Identifiers travel in URL paths encoded this way, and search cursors use
the same encoding for the next unseen id.
"""

import base64
import binascii
import re

from .errors import InvalidInputError

_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]*={0,2}$")


def encode_id(identifier: str) -> str:
    """Encode an identifier as unpadded base64url."""
    encoded = base64.urlsafe_b64encode(identifier.encode("utf-8"))
    return encoded.decode("ascii").rstrip("=")


def decode_id(encoded: str) -> str:
    """
    Decode an unpadded (or padded) base64url identifier.

    Raises:
        InvalidInputError: if the text is not base64url, not UTF-8, or
            decodes to an empty string
    """
    if not isinstance(encoded, str) or not encoded or not _B64URL_RE.match(encoded):
        raise InvalidInputError(f"Not a base64url encoded identifier: {encoded!r}")

    stripped = encoded.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        decoded = raw.decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Not a base64url encoded identifier: {encoded!r}") from e

    if not decoded:
        raise InvalidInputError("Encoded identifier is empty")
    return decoded

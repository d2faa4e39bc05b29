"""
Layer 1 — ENCODING: Base64 dialect adapter
===========================================
The custody service is not consistent about which Base64 it speaks.

Outbound ciphertext is always URL-safe without padding. Inbound data may
arrive in any of the four dialects:

    standard alphabet  (+ /)   with or without '=' padding
    URL-safe alphabet  (- _)   with or without '=' padding

Decoding folds the URL-safe alphabet onto the standard one, tries a strict
decode, then re-pads by ``len % 4`` and tries again.

Signatures go out as standard padded Base64.

Dependencies: none (stdlib base64)
"""

import base64
import binascii

from ..errors import EncodingError


def to_url_safe_nopad(raw: bytes) -> str:
    """URL-safe alphabet, '=' stripped."""
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def to_standard(raw: bytes) -> str:
    """Standard alphabet, padded."""
    return base64.b64encode(raw).decode("ascii")


def _normalise(data: str) -> str:
    return data.strip().replace("-", "+").replace("_", "/")


def from_any_base64_variant(data) -> bytes:
    """
    Decode standard / URL-safe, padded / unpadded Base64.
    Raises EncodingError when no interpretation fits.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError as e:
            raise EncodingError(f"base64 input is not ASCII: {e}") from e

    normalised = _normalise(data)
    try:
        return base64.b64decode(normalised, validate=True)
    except binascii.Error:
        pass

    padded = normalised.rstrip("=")
    padded += "=" * (-len(padded) % 4)
    try:
        return base64.b64decode(padded, validate=True)
    except binascii.Error as e:
        raise EncodingError(f"invalid base64 input: {e}") from e


def decode_signature(signature: str) -> bytes:
    """
    Signatures: standard Base64 first, URL-safe Base64 second.
    Both must be properly padded.
    """
    try:
        return base64.b64decode(signature, validate=True)
    except binascii.Error:
        pass
    try:
        return base64.b64decode(_normalise(signature), validate=True)
    except binascii.Error as e:
        raise EncodingError(f"invalid signature encoding: {e}") from e

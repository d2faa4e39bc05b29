"""
Error taxonomy for the custody transport layer.

Every error is reportable: nothing here is meant to take the process down.
A tampered signature is a ``False`` from verify, never one of these.
"""


class CustodyCryptoError(Exception):
    """Base class for every error raised by custody_crypto."""


# ── Key material ─────────────────────────────────────────────────────────────

class KeyParseError(CustodyCryptoError, ValueError):
    """Key string could not be decoded in any supported encoding."""

    def __init__(self, kind: str, pkcs1_error: str, fallback_error: str):
        self.kind           = kind
        self.pkcs1_error    = pkcs1_error
        self.fallback_error = fallback_error
        super().__init__(
            f"failed to parse {kind} key, PKCS#1 err: {pkcs1_error}, "
            f"fallback err: {fallback_error}"
        )


class KeyNotSet(CustodyCryptoError):
    """The operation needs a key half that was never configured."""


class PrivateKeyNotSet(KeyNotSet):
    def __init__(self, msg: str = "private key not set"):
        super().__init__(msg)


class PublicKeyNotSet(KeyNotSet):
    def __init__(self, msg: str = "public key not set"):
        super().__init__(msg)


class NoSigningKey(KeyNotSet):
    def __init__(self, msg: str = "no signing key: neither sign key nor exchange private key set"):
        super().__init__(msg)


# ── Payload codec ────────────────────────────────────────────────────────────

class ChunkEncryptFailed(CustodyCryptoError):
    """A single chunk could not be pushed through the private-key operation."""

    def __init__(self, chunk_index: int, reason: str):
        self.chunk_index = chunk_index
        self.reason      = reason
        super().__init__(f"failed to encrypt chunk {chunk_index}: {reason}")


class DecryptionError(CustodyCryptoError):
    """Base for block-level failures while decrypting with the public key."""


class DataLengthError(DecryptionError):
    def __init__(self, msg: str = "data length error"):
        super().__init__(msg)


class DataTooLarge(CustodyCryptoError):
    """Plaintext chunk exceeds what one raw RSA block can carry."""

    def __init__(self, msg: str = "message too long for RSA public key size"):
        super().__init__(msg)


class KeyPairMismatch(DecryptionError):
    """Block did not decode to a type-01 header under this public key."""

    def __init__(self, msg: str = "data is not encrypted by the private key"):
        super().__init__(msg)


class DataBroken(KeyPairMismatch):
    """First header byte is not zero. Under a wrong key this is what breaks first."""

    def __init__(self, msg: str = "data broken, first byte is not zero"):
        super().__init__(msg)


# ── Wire encoding ────────────────────────────────────────────────────────────

class EncodingError(CustodyCryptoError, ValueError):
    """Base64 input could not be decoded after normalisation."""


class CharsetError(EncodingError):
    """Unknown charset tag, or text that does not survive the configured charset."""

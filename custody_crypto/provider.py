"""
Crypto provider — the one surface the API layer talks to
=========================================================
    encrypt_with_private_key(str) -> str    request payloads
    decrypt_with_public_key(str)  -> str    response payloads / notifications
    sign_with_private_key(str)    -> str    transaction authorisation
    verify_with_public_key(str, str) -> bool

All key strings are parsed when the provider is built; a malformed key
fails construction. Keys are never swapped afterwards, so one provider can
be shared freely between threads.

A provider may hold:
  - the exchange private key (encrypt requests, fallback signing key)
  - the custody service public key (decrypt responses, verify)
  - a separate transaction-signing private key
"""

import codecs
import logging
from abc import ABC, abstractmethod
from typing import Optional

from .errors import CharsetError, PrivateKeyNotSet, PublicKeyNotSet
from .layers.layer1_encoding import from_any_base64_variant, to_url_safe_nopad
from .layers.layer2_keys import (
    PrivateKey,
    PublicKey,
    generate_keypair,
    parse_private,
    parse_public,
)
from .layers.layer3_chunked_rsa import decrypt_with_public_key, encrypt_with_private_key
from .layers.layer4_signing import RSASigner

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "UTF-8"


class CryptoProvider(ABC):
    """Capability interface consumed by the HTTP/API layer."""

    @abstractmethod
    def encrypt_with_private_key(self, data: str) -> str: ...

    @abstractmethod
    def decrypt_with_public_key(self, data: str) -> str: ...

    @abstractmethod
    def sign_with_private_key(self, data: str) -> str: ...

    @abstractmethod
    def verify_with_public_key(self, data: str, signature: str) -> bool: ...


class RSACryptoProvider(CryptoProvider):
    """Chunked-RSA payload transport plus RSA-SHA256 signing."""

    def __init__(self, private_key: Optional[str] = None,
                 public_key: Optional[str] = None,
                 sign_private_key: Optional[str] = None,
                 charset: str = DEFAULT_CHARSET):
        """
        private_key / public_key / sign_private_key: PEM or bare Base64.
        Any of them may be omitted; operations needing a missing half raise
        a KeyNotSet subclass.
        """
        try:
            codecs.lookup(charset)
        except LookupError as e:
            raise CharsetError(f"unknown charset: {charset!r}") from e
        self._private_key: Optional[PrivateKey] = parse_private(private_key) if private_key else None
        self._public_key:  Optional[PublicKey]  = parse_public(public_key) if public_key else None
        self._sign_key:    Optional[PrivateKey] = parse_private(sign_private_key) if sign_private_key else None
        self._charset = charset
        self._signer  = RSASigner(self._sign_key, self._private_key, self._public_key)

        logger.info(
            "crypto provider ready: private=%s public=%s sign=%s bits=%s",
            self._private_key is not None,
            self._public_key is not None,
            self._sign_key is not None,
            self.key_size,
        )

    @classmethod
    def generate(cls, bits: int = 2048, charset: str = DEFAULT_CHARSET) -> "RSACryptoProvider":
        """Fresh exchange pair on both sides. Meant for tests and local demos."""
        priv_pem, pub_pem = generate_keypair(bits)
        return cls(private_key=priv_pem.decode(), public_key=pub_pem.decode(), charset=charset)

    # ── introspection ────────────────────────────────────────────────────────

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def key_size(self) -> Optional[int]:
        key = self._private_key or self._public_key
        return key.bits if key else None

    @property
    def can_encrypt(self) -> bool:
        return self._private_key is not None

    @property
    def can_decrypt(self) -> bool:
        return self._public_key is not None

    @property
    def can_sign(self) -> bool:
        return self._signer.active_key is not None

    def export_public_pem(self) -> bytes:
        """Public half of the exchange private key, in the family it was issued in."""
        if self._private_key is None:
            raise PrivateKeyNotSet()
        return self._private_key.public_key().to_pem()

    # ── capabilities ─────────────────────────────────────────────────────────

    def _encode(self, data: str) -> bytes:
        try:
            return data.encode(self._charset)
        except UnicodeEncodeError as e:
            raise CharsetError(f"text not representable in {self._charset}: {e.reason}") from e

    def _decode(self, data: bytes) -> str:
        try:
            return data.decode(self._charset)
        except UnicodeDecodeError as e:
            raise CharsetError(f"payload is not valid {self._charset}: {e.reason}") from e

    def encrypt_with_private_key(self, data: str) -> str:
        raw = encrypt_with_private_key(self._encode(data), self._private_key)
        return to_url_safe_nopad(raw)

    def decrypt_with_public_key(self, data: str) -> str:
        if self._public_key is None:
            raise PublicKeyNotSet()
        ciphertext = from_any_base64_variant(data)
        return self._decode(decrypt_with_public_key(ciphertext, self._public_key))

    def sign_with_private_key(self, data: str) -> str:
        return self._signer.sign(self._encode(data))

    def verify_with_public_key(self, data: str, signature: str) -> bool:
        return self._signer.verify(self._encode(data), signature)


def priv_encrypt(data: str, private_key: str) -> str:
    """One-shot request encryption. Empty data stays empty."""
    if data == "":
        return ""
    return RSACryptoProvider(private_key=private_key).encrypt_with_private_key(data)


def pub_decrypt(data: str, public_key: str) -> str:
    """One-shot response decryption. Empty data stays empty."""
    if data == "":
        return ""
    return RSACryptoProvider(public_key=public_key).decrypt_with_public_key(data)

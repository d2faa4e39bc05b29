"""
Layer 4 — SIGNATURES: Canonical strings + RSA-SHA256 (PKCS#1 v1.5)
===================================================================
Authorises money movement (withdrawals, Web3 transactions).

Canonical string:
    drop empty values -> sort keys (byte-wise, case-sensitive) ->
    "k1=v1&k2=v2&..."

Values are not touched: no trimming, no case folding, no numeric
normalisation. Callers that need case folding (the transaction flow in
txsign does) apply it on top.

Signature: SHA-256 digest, PKCS#1 v1.5, standard Base64 on the wire.
Verification accepts standard or URL-safe Base64 and answers a plain
bool; only a signature that cannot be decoded at all is an error.

Dependencies: cryptography >= 41.0
"""

from typing import Mapping, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from ..errors import NoSigningKey, PublicKeyNotSet
from .layer1_encoding import decode_signature, to_standard
from .layer2_keys import PrivateKey, PublicKey


def canonicalize(params: Mapping[str, str]) -> str:
    # sorted() on str compares code points, which matches byte order for UTF-8
    pairs = [f"{k}={params[k]}" for k in sorted(params) if params[k] != ""]
    return "&".join(pairs)


def _as_bytes(data) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


class RSASigner:
    """RSA-SHA256 PKCS#1 v1.5 signer / verifier over raw bytes."""

    def __init__(self, signing_key: Optional[PrivateKey] = None,
                 fallback_key: Optional[PrivateKey] = None,
                 public_key: Optional[PublicKey] = None):
        """
        signing_key: dedicated transaction-signing key, preferred when set
        fallback_key: exchange private key, used when no signing key is set
        public_key: key to verify against
        """
        self._signing_key  = signing_key
        self._fallback_key = fallback_key
        self._public_key   = public_key

    @property
    def active_key(self) -> Optional[PrivateKey]:
        return self._signing_key or self._fallback_key

    def sign(self, data) -> str:
        key = self.active_key
        if key is None:
            raise NoSigningKey()
        sig = key.native.sign(_as_bytes(data), padding.PKCS1v15(), hashes.SHA256())
        return to_standard(sig)

    def verify(self, data, signature: str) -> bool:
        """False for a wrong signature; EncodingError for undecodable input."""
        if self._public_key is None:
            raise PublicKeyNotSet()
        raw = decode_signature(signature)
        try:
            self._public_key.native.verify(
                raw, _as_bytes(data), padding.PKCS1v15(), hashes.SHA256()
            )
            return True
        except InvalidSignature:
            return False


def sign(data, signing_key: Optional[PrivateKey],
         fallback_key: Optional[PrivateKey] = None) -> str:
    return RSASigner(signing_key, fallback_key).sign(data)


def verify(data, signature: str, public_key: PublicKey) -> bool:
    return RSASigner(public_key=public_key).verify(data, signature)

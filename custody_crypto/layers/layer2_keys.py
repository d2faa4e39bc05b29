"""
Layer 2 — KEYS: RSA key material parser
========================================
Turns configuration key strings into normalised RSA key material.

Accepted inputs:
  - PEM blocks (``-----BEGIN ...-----``), any label
  - bare Base64 DER with no armour at all (how keys sit in config files)

The custody service has issued keys in both the legacy PKCS#1 encoding and
the PKCS#8 / SubjectPublicKeyInfo encoding over the years, so both are
tried, PKCS#1 first:

    private:  PKCS#1 RSAPrivateKey   ->  PKCS#8 PrivateKeyInfo (must be RSA)
    public:   PKCS#1 RSAPublicKey    ->  SubjectPublicKeyInfo  (must be RSA)

If both attempts fail, KeyParseError reports both messages. Malformed key
material is a configuration error: it is surfaced, never retried.

Also here: keypair generation (for tests and onboarding) and the armour
helpers the custody console expects (bare Base64, one line).

Dependencies: cryptography >= 41.0
"""

import logging
import re
import textwrap
from dataclasses import dataclass, field
from typing import Optional, Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..errors import EncodingError, KeyParseError
from .layer1_encoding import from_any_base64_variant, to_standard

logger = logging.getLogger(__name__)

PEM_MARKER = "-----"

PRIVATE_LABELS = {1: "RSA PRIVATE KEY", 8: "PRIVATE KEY"}
PUBLIC_LABELS  = {1: "RSA PUBLIC KEY",  8: "PUBLIC KEY"}

_PEM_BLOCK = re.compile(
    r"-----BEGIN ([A-Z0-9 ]+)-----(.*?)-----END \1-----", re.DOTALL
)

_PARSE_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


# ── Normalised key material ──────────────────────────────────────────────────

@dataclass(frozen=True)
class PublicKey:
    """Modulus and public exponent, plus the loaded cryptography key."""

    n: int
    e: int
    pkcs_version: int = 8
    native: Optional[rsa.RSAPublicKey] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_native(cls, key: rsa.RSAPublicKey, pkcs_version: int = 8) -> "PublicKey":
        numbers = key.public_numbers()
        return cls(n=numbers.n, e=numbers.e, pkcs_version=pkcs_version, native=key)

    @property
    def bits(self) -> int:
        return self.n.bit_length()

    @property
    def byte_length(self) -> int:
        return (self.n.bit_length() + 7) // 8

    def to_pem(self, pkcs_version: int = None) -> bytes:
        version = pkcs_version or self.pkcs_version
        fmt = (serialization.PublicFormat.PKCS1 if version == 1
               else serialization.PublicFormat.SubjectPublicKeyInfo)
        return self.native.public_bytes(serialization.Encoding.PEM, fmt)


@dataclass(frozen=True)
class PrivateKey:
    """Full private key: N, E, D and the CRT parameters."""

    n: int
    e: int
    d: int
    p: int
    q: int
    dmp1: int
    dmq1: int
    iqmp: int
    pkcs_version: int = 8
    native: Optional[rsa.RSAPrivateKey] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_native(cls, key: rsa.RSAPrivateKey, pkcs_version: int = 8) -> "PrivateKey":
        numbers = key.private_numbers()
        return cls(
            n=numbers.public_numbers.n,
            e=numbers.public_numbers.e,
            d=numbers.d,
            p=numbers.p,
            q=numbers.q,
            dmp1=numbers.dmp1,
            dmq1=numbers.dmq1,
            iqmp=numbers.iqmp,
            pkcs_version=pkcs_version,
            native=key,
        )

    def __repr__(self):
        return f"PrivateKey(bits={self.bits}, pkcs_version={self.pkcs_version})"

    @property
    def bits(self) -> int:
        return self.n.bit_length()

    @property
    def byte_length(self) -> int:
        return (self.n.bit_length() + 7) // 8

    def public_key(self) -> PublicKey:
        return PublicKey.from_native(self.native.public_key(), self.pkcs_version)

    def to_pem(self, pkcs_version: int = None) -> bytes:
        version = pkcs_version or self.pkcs_version
        fmt = (serialization.PrivateFormat.TraditionalOpenSSL if version == 1
               else serialization.PrivateFormat.PKCS8)
        return self.native.private_bytes(
            serialization.Encoding.PEM, fmt, serialization.NoEncryption()
        )


# ── Armour handling ──────────────────────────────────────────────────────────

def _as_text(key_string) -> str:
    if isinstance(key_string, bytes):
        return key_string.decode("ascii", errors="replace")
    return key_string


def _to_der(key_string, kind: str) -> bytes:
    """PEM body or bare Base64 -> DER bytes."""
    text = _as_text(key_string).strip()
    if PEM_MARKER in text:
        match = _PEM_BLOCK.search(text)
        if match is None:
            msg = "malformed PEM armour"
            raise KeyParseError(kind, msg, msg)
        text = match.group(2)
    body = "".join(text.split())
    if not body:
        raise KeyParseError(kind, "empty key", "empty key")
    try:
        return from_any_base64_variant(body)
    except EncodingError as e:
        raise KeyParseError(kind, str(e), str(e)) from e


def _armour(der: bytes, label: str) -> bytes:
    body = "\n".join(textwrap.wrap(to_standard(der), 64))
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----\n".encode("ascii")


# ── DER shape check ──────────────────────────────────────────────────────────

_DER_INTEGER  = 0x02
_DER_SEQUENCE = 0x30


def _der_element(data: bytes, offset: int) -> Tuple[int, int]:
    """(tag, offset of the next element). Definite lengths only."""
    if offset + 2 > len(data):
        raise ValueError("truncated DER element")
    tag, length = data[offset], data[offset + 1]
    offset += 2
    if length & 0x80:
        width = length & 0x7F
        if width == 0 or offset + width > len(data):
            raise ValueError("bad DER length")
        length = int.from_bytes(data[offset:offset + width], "big")
        offset += width
    if offset + length > len(data):
        raise ValueError("truncated DER element")
    return tag, offset + length


def _inner_tags(der: bytes, count: int) -> list:
    """Tags of the first ``count`` elements inside the outer SEQUENCE."""
    if not der or der[0] != _DER_SEQUENCE:
        raise ValueError("key is not a DER SEQUENCE")
    _, end = _der_element(der, 0)
    offset = 2 + (der[1] & 0x7F if der[1] & 0x80 else 0)
    tags = []
    while offset < end and len(tags) < count:
        tag, offset = _der_element(der, offset)
        tags.append(tag)
    return tags


def _require_pkcs1(der: bytes, count: int, structure: str) -> None:
    # PKCS#1 opens with bare INTEGERs; SPKI and PKCS#8 carry an
    # AlgorithmIdentifier SEQUENCE instead.
    if _inner_tags(der, count) != [_DER_INTEGER] * count:
        raise ValueError(f"not a PKCS#1 {structure} (AlgorithmIdentifier present)")


# ── Parsers ──────────────────────────────────────────────────────────────────

def parse_private(key_string) -> PrivateKey:
    """PKCS#1 first, PKCS#8 second. Raises KeyParseError."""
    der = _to_der(key_string, "private")

    try:
        _require_pkcs1(der, 3, "RSAPrivateKey")
        key = serialization.load_pem_private_key(
            _armour(der, PRIVATE_LABELS[1]), password=None
        )
        logger.debug("private key parsed as PKCS#1")
        return PrivateKey.from_native(key, pkcs_version=1)
    except _PARSE_ERRORS as e:
        pkcs1_error = str(e) or type(e).__name__

    try:
        key = serialization.load_der_private_key(der, password=None)
    except _PARSE_ERRORS as e:
        raise KeyParseError("private", pkcs1_error, str(e) or type(e).__name__) from e
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyParseError("private", pkcs1_error,
                            f"PKCS#8 key is {type(key).__name__}, not RSA")
    logger.debug("private key parsed as PKCS#8")
    return PrivateKey.from_native(key, pkcs_version=8)


def parse_public(key_string) -> PublicKey:
    """PKCS#1 first, SubjectPublicKeyInfo second. Raises KeyParseError."""
    der = _to_der(key_string, "public")

    try:
        _require_pkcs1(der, 2, "RSAPublicKey")
        key = serialization.load_pem_public_key(_armour(der, PUBLIC_LABELS[1]))
        logger.debug("public key parsed as PKCS#1")
        return PublicKey.from_native(key, pkcs_version=1)
    except _PARSE_ERRORS as e:
        pkcs1_error = str(e) or type(e).__name__

    try:
        key = serialization.load_der_public_key(der)
    except _PARSE_ERRORS as e:
        raise KeyParseError("public", pkcs1_error, str(e) or type(e).__name__) from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyParseError("public", pkcs1_error,
                            f"SPKI key is {type(key).__name__}, not RSA")
    logger.debug("public key parsed as SPKI")
    return PublicKey.from_native(key, pkcs_version=8)


# ── Generation / export ──────────────────────────────────────────────────────

def generate_keypair(bits: int = 2048, pkcs_version: int = 8) -> Tuple[bytes, bytes]:
    """
    Fresh RSA keypair as (private_pem, public_pem).
    pkcs_version 1 -> RSA PRIVATE KEY / RSA PUBLIC KEY
    pkcs_version 8 -> PRIVATE KEY / PUBLIC KEY
    """
    if pkcs_version not in (1, 8):
        raise ValueError("pkcs_version must be 1 or 8")
    native = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    priv = PrivateKey.from_native(native, pkcs_version)
    return priv.to_pem(), priv.public_key().to_pem()


def format_key(key) -> str:
    """Strip PEM armour and line breaks, leaving bare Base64."""
    text = _as_text(key).strip()
    if text.startswith("---") and text.endswith("---"):
        lines = text.splitlines()
        return "".join(line.strip() for line in lines[1:-1])
    return text


def new_rsa_key() -> Tuple[str, str]:
    """2048-bit PKCS#8/SPKI pair as bare Base64 strings."""
    priv, pub = generate_keypair(2048, 8)
    return format_key(priv), format_key(pub)


def public_from_private(key_string) -> str:
    """Bare Base64 public key, same PKCS family as the private key."""
    return format_key(parse_private(key_string).public_key().to_pem())


def to_pkcs8(key_string) -> str:
    return parse_private(key_string).to_pem(pkcs_version=8).decode("ascii")

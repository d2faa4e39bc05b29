"""
Layer 3 — PAYLOAD: Chunked RSA "encrypt with private key"
==========================================================
The custody service does not use RSA-OAEP. Request and response payloads
are pushed through the RSA *signature* primitive instead:

    encrypt:  m = 00 01 FF..FF 00 <chunk>      c = m^D mod N
    decrypt:  m = c^E mod N                    strip 00 01 FF..FF 00

That is PKCS#1 v1.5 type-01 padding with no DigestInfo, applied to raw
plaintext. It is not confidential against anyone holding the public key;
it is what the remote end speaks, so it is reproduced byte for byte.

Chunking:
  - plaintext is cut into ``k - 11`` byte pieces (k = modulus bytes);
    the last piece may be short, an exact multiple adds no empty chunk
  - every ciphertext block is exactly ``k`` bytes, left-zero-padded
  - blocks are concatenated with no framing: block boundaries come
    purely from k, so a ciphertext whose length is not a multiple of k
    is rejected

Wire encoding of the result is Layer 1's business.

Dependencies: none beyond Layer 2 key material (int.pow does the math)
"""

import logging
from typing import Iterator, List

from ..errors import (
    ChunkEncryptFailed,
    DataBroken,
    DataLengthError,
    DataTooLarge,
    KeyPairMismatch,
    PrivateKeyNotSet,
    PublicKeyNotSet,
)
from .layer2_keys import PrivateKey, PublicKey

logger = logging.getLogger(__name__)

PADDING_OVERHEAD = 11   # 00 01 + at least 8 x FF + 00


# ── Integer / octet-string conversion (PKCS#1 I2OSP / OS2IP) ────────────────

def os2ip(data: bytes) -> int:
    return int.from_bytes(data, "big")


def i2osp(x: int, length: int) -> bytes:
    """Big-endian, left-zero-padded to exactly ``length`` bytes."""
    if x < 0 or x >= 256 ** length:
        raise ValueError("integer too large")
    return x.to_bytes(length, "big")


def split_chunks(data: bytes, size: int) -> List[bytes]:
    """Fixed-size pieces in order; short tail allowed, never an empty tail."""
    return [data[i:i + size] for i in range(0, len(data), size)]


# ── Padding ──────────────────────────────────────────────────────────────────

def pad_type1(chunk: bytes, k: int) -> bytes:
    fill = k - len(chunk) - 3
    if fill < 8:
        raise DataTooLarge(f"chunk of {len(chunk)} bytes does not fit a {k}-byte block")
    return b"\x00\x01" + b"\xff" * fill + b"\x00" + chunk


def _lenient_separator(block: bytes) -> int:
    """
    Compatibility shim for peers that emit non-compliant padding.
    Only reached when the strict scan found no separator. Since byte[1]
    has already been checked to be 0x01, scanning from index 1 sees the
    same bytes as the strict scan and always returns -1 here. It stays a
    separate hook so a header-tolerant scan can be added in one place.
    """
    return block.find(b"\x00", 1)


def unpad_type1(block: bytes, k: int) -> bytes:
    """Validate a decrypted k-byte block and return its payload bytes."""
    if len(block) != k:
        raise DataLengthError()
    if block[0] != 0x00:
        raise DataBroken()
    if block[1] != 0x01:
        raise KeyPairMismatch()

    sep = block.find(b"\x00", 2)
    if sep < 0:
        sep = _lenient_separator(block)
    if sep < 0:
        raise DataBroken("data broken, no padding separator")
    return block[sep + 1:]


# ── Raw RSA operations ───────────────────────────────────────────────────────

def _private_op(m: int, key: PrivateKey) -> int:
    """m^D mod N via CRT, checked against the public exponent."""
    m1 = pow(m, key.dmp1, key.p)
    m2 = pow(m, key.dmq1, key.q)
    h  = (key.iqmp * (m1 - m2)) % key.p
    c  = m2 + h * key.q
    if pow(c, key.e, key.n) != m:
        raise ValueError("private key operation failed verification")
    return c


def _public_op(c: int, key: PublicKey) -> int:
    return pow(c, key.e, key.n)


# ── Codec ────────────────────────────────────────────────────────────────────

def _iter_encrypted(data: bytes, key: PrivateKey) -> Iterator[bytes]:
    k = key.byte_length
    chunk_size = k - PADDING_OVERHEAD
    if chunk_size <= 0:
        raise ChunkEncryptFailed(0, f"modulus of {k} bytes is too small")
    for index, chunk in enumerate(split_chunks(data, chunk_size)):
        try:
            m = os2ip(pad_type1(chunk, k))
            yield i2osp(_private_op(m, key), k)
        except (ValueError, ArithmeticError, DataTooLarge) as e:
            raise ChunkEncryptFailed(index, str(e)) from e


def encrypt_with_private_key(data: bytes, key: PrivateKey) -> bytes:
    """Raw ciphertext bytes: one k-byte block per plaintext chunk."""
    if key is None:
        raise PrivateKeyNotSet()
    blocks = list(_iter_encrypted(data, key))
    logger.debug("encrypted %d bytes into %d blocks", len(data), len(blocks))
    return b"".join(blocks)


def decrypt_with_public_key(ciphertext: bytes, key: PublicKey) -> bytes:
    """Inverse of encrypt_with_private_key. Raises a DecryptionError subclass."""
    if key is None:
        raise PublicKeyNotSet()
    k = key.byte_length
    out = []
    for block in split_chunks(ciphertext, k):
        if len(block) != k:
            raise DataLengthError(
                f"data length error, trailing block of {len(block)} bytes, expected {k}"
            )
        c = os2ip(block)
        if c >= key.n:
            raise KeyPairMismatch("ciphertext block is not below the modulus")
        out.append(unpad_type1(i2osp(_public_op(c, key), k), k))
    logger.debug("decrypted %d blocks", len(out))
    return b"".join(out)

"""
custody_crypto — application-layer crypto for the custody platform API
=======================================================================
Payload encryption, response decryption and transaction signing, exactly
as the custody service speaks them.

Layers:
    1  ENCODING    — Base64 dialects (standard / URL-safe, padded / not)
    2  KEYS        — PKCS#1 / PKCS#8 / SPKI parsing, PEM or bare Base64
    3  PAYLOAD     — chunked RSA "encrypt with private key" (type-01 padding)
    4  SIGNATURES  — canonical strings + RSA-SHA256 PKCS#1 v1.5
    PROVIDER       — encrypt / decrypt / sign / verify façade
    TXSIGN         — withdraw + Web3 MD5-then-RSA transaction signatures

License: Apache 2.0
"""

__version__ = "1.0.0"

from .errors import (
    CustodyCryptoError,
    KeyParseError,
    KeyNotSet,
    PrivateKeyNotSet,
    PublicKeyNotSet,
    NoSigningKey,
    ChunkEncryptFailed,
    DecryptionError,
    DataLengthError,
    DataTooLarge,
    DataBroken,
    KeyPairMismatch,
    EncodingError,
    CharsetError,
)
from .layers.layer1_encoding    import to_url_safe_nopad, from_any_base64_variant
from .layers.layer2_keys        import (PrivateKey, PublicKey, parse_private, parse_public,
                                        generate_keypair, format_key, new_rsa_key,
                                        public_from_private, to_pkcs8)
from .layers.layer3_chunked_rsa import encrypt_with_private_key, decrypt_with_public_key
from .layers.layer4_signing     import canonicalize, RSASigner
from .provider                  import CryptoProvider, RSACryptoProvider, priv_encrypt, pub_decrypt
from .txsign                    import (withdraw_sign_params, web3_sign_params,
                                        generate_withdraw_sign, generate_web3_sign,
                                        verify_transaction_sign)
from .config                    import CryptoConfig

__all__ = [
    "CustodyCryptoError", "KeyParseError", "KeyNotSet", "PrivateKeyNotSet",
    "PublicKeyNotSet", "NoSigningKey", "ChunkEncryptFailed", "DecryptionError",
    "DataLengthError", "DataTooLarge", "DataBroken", "KeyPairMismatch", "EncodingError",
    "CharsetError",
    "to_url_safe_nopad", "from_any_base64_variant",
    "PrivateKey", "PublicKey", "parse_private", "parse_public",
    "generate_keypair", "format_key", "new_rsa_key", "public_from_private", "to_pkcs8",
    "encrypt_with_private_key", "decrypt_with_public_key",
    "canonicalize", "RSASigner",
    "CryptoProvider", "RSACryptoProvider", "priv_encrypt", "pub_decrypt",
    "withdraw_sign_params", "web3_sign_params",
    "generate_withdraw_sign", "generate_web3_sign", "verify_transaction_sign",
    "CryptoConfig",
]

"""
custody_crypto — Layer 4 + transaction signatures
==================================================
Run with:  python -m pytest tests/ -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base64
import hashlib
import itertools
from decimal import Decimal

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from custody_crypto.errors import EncodingError, NoSigningKey, PublicKeyNotSet
from custody_crypto.layers.layer2_keys import parse_private, parse_public
from custody_crypto.layers.layer4_signing import RSASigner, canonicalize, sign, verify
from custody_crypto.provider import RSACryptoProvider
from custody_crypto.txsign import (
    generate_web3_sign,
    generate_withdraw_sign,
    sign_digest,
    verify_transaction_sign,
    web3_sign_params,
    withdraw_sign_params,
)

MSG = b"address_to=0xabc&amount=1.5&request_id=req001"


# ── canonical strings ─────────────────────────────────────────────────────────
def test_canonical_order_independent():
    items = [("request_id", "req001"), ("amount", "1.5"), ("address_to", "0xabc")]
    outputs = {canonicalize(dict(p)) for p in itertools.permutations(items)}
    assert outputs == {"address_to=0xabc&amount=1.5&request_id=req001"}

def test_canonical_drops_empty_values():
    assert canonicalize({"b": "", "a": "1", "c": "x"}) == "a=1&c=x"
    assert canonicalize({"a": ""}) == ""
    assert canonicalize({}) == ""

def test_canonical_is_case_sensitive_and_untouched():
    # uppercase sorts before lowercase; values keep case and trailing zeros
    assert canonicalize({"b": "X", "B": "1.50", "a": " y"}) == "B=1.50&a= y&b=X"


# ── RSA-SHA256 ────────────────────────────────────────────────────────────────
def test_sign_verify(private_key, public_key):
    sig = sign(MSG, private_key)
    assert verify(MSG, sig, public_key) is True

def test_tamper_detected(private_key, public_key):
    sig = sign(MSG, private_key)
    assert verify(MSG + b"x", sig, public_key) is False

def test_signature_is_standard_pkcs1v15(private_key, public_key):
    sig = base64.b64decode(sign(MSG, private_key), validate=True)
    public_key.native.verify(sig, MSG, padding.PKCS1v15(), hashes.SHA256())

def test_url_safe_signature_accepted(private_key, public_key):
    raw = base64.b64decode(sign(MSG, private_key))
    assert verify(MSG, base64.urlsafe_b64encode(raw).decode(), public_key) is True

def test_undecodable_signature_is_error(public_key):
    with pytest.raises(EncodingError):
        verify(MSG, "!!not base64!!", public_key)

def test_signing_key_preferred_over_exchange_key(private_key, other_keypair):
    sign_key = parse_private(other_keypair[0])
    signer = RSASigner(signing_key=sign_key, fallback_key=private_key,
                       public_key=parse_public(other_keypair[1]))
    assert signer.active_key is sign_key
    assert signer.verify(MSG, signer.sign(MSG)) is True

def test_no_signing_key():
    with pytest.raises(NoSigningKey):
        RSASigner().sign(MSG)
    with pytest.raises(PublicKeyNotSet):
        RSASigner().verify(MSG, "AAAA")


# ── transaction flows ─────────────────────────────────────────────────────────
def test_sign_digest_is_md5_of_lowercased_canonical():
    params = {"request_id": "REQ001", "amount": "1.5", "address_to": "0xABC"}
    expected = hashlib.md5(b"address_to=0xabc&amount=1.5&request_id=req001").hexdigest()
    assert sign_digest(params) == expected

def test_withdraw_scenario(keypair, other_keypair):
    provider = RSACryptoProvider(private_key=keypair[0].decode(),
                                 public_key=keypair[1].decode())
    params = {"address_to": "0xabc", "amount": "1.5", "request_id": "req001"}
    sig = generate_withdraw_sign(params, provider)

    digest = hashlib.md5(MSG.lower()).hexdigest()
    assert provider.verify_with_public_key(digest, sig) is True
    assert verify_transaction_sign(params, sig, provider) is True

    stranger = RSACryptoProvider(public_key=other_keypair[1].decode())
    assert verify_transaction_sign(params, sig, stranger) is False

def test_signature_covers_digest_not_canonical_string(keypair):
    provider = RSACryptoProvider(private_key=keypair[0].decode(),
                                 public_key=keypair[1].decode())
    params = {"address_to": "0xabc", "amount": "1.5", "request_id": "req001"}
    sig = generate_withdraw_sign(params, provider)
    assert provider.verify_with_public_key(canonicalize(params), sig) is False

def test_withdraw_params_optional_fields():
    base = withdraw_sign_params("r1", 1000537, "Sepolia", "0xdcb0", Decimal("0.001"))
    assert base == {
        "request_id": "r1", "sub_wallet_id": "1000537", "symbol": "Sepolia",
        "address_to": "0xdcb0", "amount": "0.001",
    }
    full = withdraw_sign_params("r1", 1, "BTC", "bc1q", "0.5", memo="m", outputs="o")
    assert full["memo"] == "m" and full["outputs"] == "o"
    assert "memo" not in withdraw_sign_params("r1", 1, "BTC", "bc1q", "0.5", memo="")

@pytest.mark.parametrize("amount,expected", [
    (Decimal("0.0000001"), "0.0000001"),
    (Decimal("1E+2"),      "100"),
    (Decimal("1.50"),      "1.50"),
    (7,                    "7"),
    ("2.500",              "2.500"),
])
def test_amount_is_plain_notation(amount, expected):
    assert withdraw_sign_params("r1", 1, "ETH", "0xabc", amount)["amount"] == expected
    assert web3_sign_params("r1", 1, "ETH", "0xc", amount, "0x")["amount"] == expected

def test_web3_sign_roundtrip(keypair):
    provider = RSACryptoProvider(private_key=keypair[0].decode(),
                                 public_key=keypair[1].decode())
    params = web3_sign_params("r2", 7, "ETH", "0xContract", "0", "0xa9059cbb")
    assert sorted(params) == ["amount", "input_data", "interactive_contract",
                              "main_chain_symbol", "request_id", "sub_wallet_id"]
    sig = generate_web3_sign(params, provider)
    assert verify_transaction_sign(params, sig, provider) is True

def test_transaction_sign_requires_provider():
    with pytest.raises(ValueError):
        generate_withdraw_sign({"a": "b"}, None)

"""
custody_crypto — Live Demo: every layer of the custody transport
=================================================================
Run:  python examples/demo_transport.py

Walks a request payload through encryption, back through decryption, and
signs a withdrawal the way the custody verifier expects.
"""

import sys, os, time
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from custody_crypto.errors                    import KeyPairMismatch
from custody_crypto.layers.layer1_encoding    import from_any_base64_variant
from custody_crypto.layers.layer2_keys        import generate_keypair, format_key, parse_private
from custody_crypto.layers.layer4_signing     import canonicalize
from custody_crypto.provider                  import RSACryptoProvider
from custody_crypto.txsign                    import (withdraw_sign_params, generate_withdraw_sign,
                                                      verify_transaction_sign, sign_digest)

LINE = "═" * 70
MSG  = '{"request_id":"req001","symbol":"ETH","amount":"1.5","charset":"utf-8"}'

def header(layer, name):
    print(f"\n{LINE}")
    print(f"  {layer} — {name}")
    print(LINE)

def ok(label, value=""):
    print(f"  ✓  {label}{f': {value}' if value else ''}")

# ─────────────────────────────────────────────────────────────────────────────
print(f"\n{LINE}")
print("  custody_crypto — Transport Demo")
print(LINE)
print(f"  Payload: {MSG}\n")

# ── LAYER 2 ──────────────────────────────────────────────────────────────────
header("Layer 2", "KEYS — PKCS#8 pair, stored as bare Base64")
t0 = time.perf_counter()
priv_pem, pub_pem = generate_keypair(2048, 8)
priv_b64, pub_b64 = format_key(priv_pem), format_key(pub_pem)
key = parse_private(priv_b64)
ok("Key size",   f"{key.bits} bits")
ok("Chunk size", f"{key.byte_length - 11} bytes plaintext per {key.byte_length}-byte block")
ok("Generated",  f"{(time.perf_counter() - t0) * 1000:.0f} ms")

# ── LAYER 3 ──────────────────────────────────────────────────────────────────
header("Layer 3", "PAYLOAD — chunked RSA, private-key encrypt")
provider = RSACryptoProvider(private_key=priv_b64, public_key=pub_b64)
t0 = time.perf_counter()
ct = provider.encrypt_with_private_key(MSG * 5)
pt = provider.decrypt_with_public_key(ct)
ok("Plaintext",  f"{len(MSG * 5)} bytes")
ok("Ciphertext", f"{len(from_any_base64_variant(ct))} bytes, {len(ct)} chars URL-safe")
ok("Round-trip", f"{(time.perf_counter() - t0) * 1000:.1f} ms")
ok("Match",      str(pt == MSG * 5))

stranger = RSACryptoProvider(public_key=format_key(generate_keypair(2048)[1]))
try:
    stranger.decrypt_with_public_key(ct)
except KeyPairMismatch as e:
    ok("Wrong public key rejected", type(e).__name__)

# ── LAYER 4 ──────────────────────────────────────────────────────────────────
header("Layer 4", "SIGNATURES — withdraw authorisation")
params = withdraw_sign_params("req001", 1000537, "Sepolia",
                              "0xdcb0D867403adE76e75a4A6bBcE9D53C9d05B981", "0.001")
sig = generate_withdraw_sign(params, provider)
ok("Canonical",       canonicalize(params).lower())
ok("MD5 digest",      sign_digest(params))
ok("Signature",       sig[:40] + "...")
ok("Valid",           str(verify_transaction_sign(params, sig, provider)))
params["amount"] = "0.002"
ok("Tampered amount", str(verify_transaction_sign(params, sig, provider)))

print(f"\n{LINE}\n")

"""
Transaction signatures for withdrawals and Web3 transactions.

The custody verifier expects a two-stage digest, reproduced exactly:

    canonicalize(params) -> lower() -> MD5 hex -> RSA-SHA256 sign (Base64)

i.e. the RSA signature covers the 32-char MD5 hex string, never the
canonical string itself.
"""

import hashlib
import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional, Union

from .layers.layer4_signing import canonicalize
from .provider import CryptoProvider

logger = logging.getLogger(__name__)

Amount = Union[str, int, Decimal]


def format_amount(amount: Amount) -> str:
    """Plain notation, never exponent form. Trailing zeros are kept."""
    if isinstance(amount, Decimal):
        return format(amount, "f")
    return str(amount)


def sign_digest(params: Mapping[str, str]) -> str:
    """MD5 hex of the lower-cased canonical string: what actually gets signed."""
    canonical = canonicalize(params).lower()
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


def generate_transaction_sign(params: Mapping[str, str], provider: CryptoProvider) -> str:
    if provider is None:
        raise ValueError("crypto provider is required for transaction signing")
    digest = sign_digest(params)
    logger.debug("signing transaction fields: %s", ",".join(sorted(params)))
    return provider.sign_with_private_key(digest)


def verify_transaction_sign(params: Mapping[str, str], signature: str,
                            provider: CryptoProvider) -> bool:
    return provider.verify_with_public_key(sign_digest(params), signature)


# ── withdraw ─────────────────────────────────────────────────────────────────

def withdraw_sign_params(request_id: str, sub_wallet_id: Union[int, str], symbol: str,
                         address_to: str, amount: Amount,
                         memo: Optional[str] = None,
                         outputs: Optional[str] = None) -> Dict[str, str]:
    params = {
        "request_id":    request_id,
        "sub_wallet_id": str(sub_wallet_id),
        "symbol":        symbol,
        "address_to":    address_to,
        "amount":        format_amount(amount),
    }
    if memo:
        params["memo"] = memo
    if outputs:
        params["outputs"] = outputs
    return params


def generate_withdraw_sign(params: Mapping[str, str], provider: CryptoProvider) -> str:
    return generate_transaction_sign(params, provider)


# ── web3 ─────────────────────────────────────────────────────────────────────

def web3_sign_params(request_id: str, sub_wallet_id: Union[int, str],
                     main_chain_symbol: str, interactive_contract: str,
                     amount: Amount, input_data: str) -> Dict[str, str]:
    return {
        "request_id":           request_id,
        "sub_wallet_id":        str(sub_wallet_id),
        "main_chain_symbol":    main_chain_symbol,
        "interactive_contract": interactive_contract,
        "amount":               format_amount(amount),
        "input_data":           input_data,
    }


def generate_web3_sign(params: Mapping[str, str], provider: CryptoProvider) -> str:
    return generate_transaction_sign(params, provider)

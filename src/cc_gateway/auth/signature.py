"""Wallet signature checks for marketplace and admin requests.

Every signature must be a non-trivial string. When the caller also sends the
exact `message` that was signed (EIP-191 personal_sign, as MetaMask produces),
the signer is recovered and must equal the claimed wallet. Without a message
only the length check applies; no canonical message is assumed.
"""

from eth_account import Account
from eth_account.messages import encode_defunct

from src.cc_common.errors import InvalidSignatureError


def check_signature(
    signature: str | None,
    min_length: int,
    wallet_address: str | None = None,
    message: str | None = None,
) -> None:
    if not isinstance(signature, str) or len(signature.strip()) < min_length:
        raise InvalidSignatureError()
    if message is None:
        return
    if not wallet_address:
        raise InvalidSignatureError("Wallet address required to verify a signed message")

    recovered = recover_signer(message, signature)
    if recovered.lower() != wallet_address.lower():
        raise InvalidSignatureError("Signature does not match wallet address")


def recover_signer(message: str, signature: str) -> str:
    """Address that produced `signature` over `message`; InvalidSignatureError if malformed."""
    try:
        return Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as exc:
        raise InvalidSignatureError(f"Malformed signature: {exc}") from exc

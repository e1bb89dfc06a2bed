"""
EVM Off-Chain Signing Utilities

Local signing helpers backed by ``eth_account``; no RPC calls or on-chain
state queries are made.

Exported helpers
----------------
WalletSigner
    Holds the wallet private key and produces EIP-191 message signatures
    (free-tier ``x-wallet-auth`` header) and EIP-712 typed-data signatures
    (x402 payment authorizations).

build_erc3009_typed_data
    Wrap ERC-3009 ``transferWithAuthorization`` fields in an EIP-712
    envelope without signing.

sign_erc3009_authorization
    Build the EIP-712 payload, sign it with a ``WalletSigner`` and return
    an ``ExactEvmPayload`` ready to be embedded in an x402 payment.
"""

import os
import time
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_hex

from ...engine.exceptions import SigningError
from ...schemas.https import WalletAuthHeader
from .schemas import ExactAuthorization, ExactEvmPayload


class WalletSigner:
    """
    Wallet credential holder.

    The key is validated once at construction; afterwards the signer is
    read-only and safe to share between concurrent requests.

    Raises:
        SigningError: If ``private_key`` is not a usable secp256k1 key.
    """

    def __init__(self, private_key: str):
        if not private_key:
            raise SigningError("Wallet private key is empty")
        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            # Never echo the key itself.
            raise SigningError(f"Invalid wallet private key: {type(e).__name__}") from e

    @property
    def address(self) -> str:
        """Checksummed wallet address."""
        return self._account.address

    def sign(self, message: str) -> str:
        """
        Sign ``message`` with EIP-191 ``personal_sign`` semantics.

        Returns:
            0x-prefixed 65-byte signature hex.
        """
        try:
            signed = self._account.sign_message(encode_defunct(text=message))
        except Exception as e:
            raise SigningError(f"Failed to sign message: {e}") from e
        return to_hex(signed.signature)

    def sign_typed_data(self, full_message: Dict[str, Any]) -> str:
        """
        Sign an EIP-712 ``{types, primaryType, domain, message}`` structure.

        Returns:
            0x-prefixed packed ``r || s || v`` signature hex.
        """
        try:
            signed = Account.sign_typed_data(self._account.key, full_message=full_message)
        except Exception as e:
            raise SigningError(f"Failed to sign typed data: {e}") from e
        return to_hex(signed.signature)

    def auth_header(self, timestamp: Optional[int] = None) -> WalletAuthHeader:
        """
        Build the free-tier auth header for ``timestamp`` (default: now).

        Must be called once per attempt; the signature binds the timestamp.
        """
        ts = int(time.time()) if timestamp is None else timestamp
        return WalletAuthHeader(
            address=self.address,
            timestamp=ts,
            signature=self.sign(WalletAuthHeader.message_for(ts)),
        )


# ---------------------------------------------------------------------------
# ERC-3009 typed data
# ---------------------------------------------------------------------------

TRANSFER_WITH_AUTHORIZATION = "TransferWithAuthorization"

ERC3009_TYPES: Dict[str, List[Dict[str, str]]] = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    TRANSFER_WITH_AUTHORIZATION: [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ],
}

# Carried as decimal strings on the wire, signed as uint256.
_UINT_FIELDS = ("value", "validAfter", "validBefore")


def build_erc3009_typed_data(
    authorization: ExactAuthorization,
    *,
    chain_id: int,
    token: str,
    domain_name: str,
    domain_version: str,
) -> Dict[str, Any]:
    """
    Wrap an ``ExactAuthorization`` in the EIP-712 ``{types, primaryType,
    domain, message}`` layout accepted by
    ``Account.sign_typed_data(full_message=...)``, without signing.

    The authorization's wire field names (``from``, ``validAfter``...) are
    already the ERC-3009 message field names.

    Args:
        authorization:  Authorization fields (string-encoded integers are converted).
        chain_id:       EVM network ID.
        token:          ERC-20 contract address, also the ``verifyingContract``.
        domain_name:    EIP-712 domain ``name`` as registered in the token contract.
        domain_version: EIP-712 domain ``version`` string.
    """
    message = authorization.to_dict()
    for key in _UINT_FIELDS:
        message[key] = int(message[key])
    return {
        "types": ERC3009_TYPES,
        "primaryType": TRANSFER_WITH_AUTHORIZATION,
        "domain": {
            "name": domain_name,
            "version": domain_version,
            "chainId": chain_id,
            "verifyingContract": token,
        },
        "message": message,
    }


def sign_erc3009_authorization(
    *,
    signer: WalletSigner,
    token: str,
    chain_id: int,
    recipient: str,
    value: int,
    valid_after: int,
    valid_before: int,
    domain_name: str,
    domain_version: str,
    nonce: Optional[str] = None,
) -> ExactEvmPayload:
    """
    Sign an ERC-3009 ``transferWithAuthorization`` and return the x402
    ``exact`` payload.

    The authorizer is always the signer's own address.

    Args:
        signer:         Wallet that pays.
        token:          ERC-20 token contract address.
        chain_id:       EVM network ID (e.g. ``8453`` Base).
        recipient:      Address that will receive the tokens.
        value:          Amount in the token's smallest unit.
        valid_after:    Unix timestamp after which the authorization is valid.
        valid_before:   Unix timestamp before which it must be submitted.
        domain_name:    EIP-712 domain ``name`` (e.g. ``"USD Coin"``).
        domain_version: EIP-712 domain ``version`` (e.g. ``"2"``).
        nonce:          Optional bytes32 hex string; random when omitted.

    Returns:
        ``ExactEvmPayload`` with the packed signature and authorization.

    Raises:
        ValueError: If ``valid_after >= valid_before``.
        SigningError: If the signer rejects the typed data.
    """
    if valid_after >= valid_before:
        raise ValueError(
            f"valid_after ({valid_after}) must be strictly less than "
            f"valid_before ({valid_before})"
        )

    resolved_nonce = nonce if nonce is not None else "0x" + os.urandom(32).hex()

    authorization = ExactAuthorization(
        from_address=signer.address,
        to=recipient,
        value=str(value),
        valid_after=str(valid_after),
        valid_before=str(valid_before),
        nonce=resolved_nonce,
    )
    typed_data = build_erc3009_typed_data(
        authorization,
        chain_id=chain_id,
        token=token,
        domain_name=domain_name,
        domain_version=domain_version,
    )
    signature = signer.sign_typed_data(typed_data)
    return ExactEvmPayload(signature=signature, authorization=authorization)

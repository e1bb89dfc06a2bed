"""
EVM Payment Schema Models

Pydantic models for the x402 ``exact`` scheme on EVM chains, where the
payment authorization is an ERC-3009 ``transferWithAuthorization`` signed
off-chain by the wallet.

Classes:
    - ExactAuthorization: The ERC-3009 fields, serialized as decimal strings
      the way the x402 wire format carries them.
    - ExactEvmPayload: Authorization plus its packed 65-byte signature; this
      is the scheme-specific ``payload`` of a PaymentPayload.
"""

from pydantic import Field, field_validator

from ...schemas.bases import X402Model


class ExactAuthorization(X402Model):
    """
    ERC-3009 ``transferWithAuthorization`` parameters.

    Attributes:
        from_address: Payer address (``from`` on the wire).
        to: Recipient address (the requirement's ``payTo``).
        value: Amount in the token's smallest unit, as a decimal string.
        valid_after: Unix timestamp (string) after which the transfer is valid.
        valid_before: Unix timestamp (string) before which it must settle.
        nonce: Random bytes32, 0x-prefixed hex, for replay protection.
    """

    from_address: str = Field(..., alias="from")
    to: str
    value: str
    valid_after: str
    valid_before: str
    nonce: str

    @field_validator("nonce")
    @classmethod
    def _check_nonce(cls, v: str) -> str:
        hex_str = v[2:] if v.lower().startswith("0x") else v
        if len(hex_str) != 64:
            raise ValueError(f"nonce must be 32 bytes of hex, got {len(hex_str)} chars")
        int(hex_str, 16)
        return "0x" + hex_str


class ExactEvmPayload(X402Model):
    """Signed ERC-3009 authorization carried inside an x402 payment payload."""

    signature: str = Field(..., description="0x-prefixed packed r || s || v signature")
    authorization: ExactAuthorization

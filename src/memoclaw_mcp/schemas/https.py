"""
HTTP Request/Response Schema Models for the MemoClaw request client

This module defines the Pydantic models exchanged with the MemoClaw backend
during the two-tier authentication flow:

1. Client sends every request with an ``x-wallet-auth`` header (free tier)
2. Backend answers 402 with an x402 payment requirement once the free tier
   is exhausted (``PAYMENT-REQUIRED`` header for v2, JSON body for v1)
3. Client signs a payment authorization and retries with a
   ``PAYMENT-SIGNATURE`` (v2) or ``X-PAYMENT`` (v1) header

All x402 models inherit from X402Model for camelCase wire serialization.
"""

import base64
import binascii
import json
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from .bases import X402Model
from .versions import X402Version


WALLET_AUTH_HEADER = "x-wallet-auth"
WALLET_AUTH_MESSAGE_PREFIX = "memoclaw-auth"


# ============================================================================
# Free tier: wallet auth header
# ============================================================================

class WalletAuthHeader(BaseModel):
    """Free-tier authentication header value.

    Serialized as ``{address}:{timestamp}:{signature}``. The signature binds
    the timestamp, so a value must never be reused across attempts.

    Attributes:
        address: Checksummed wallet address.
        timestamp: Unix time (seconds) the signature was made at.
        signature: 0x-prefixed EIP-191 signature of ``message_for(timestamp)``.
    """
    address: str
    timestamp: int
    signature: str

    @staticmethod
    def message_for(timestamp: int) -> str:
        return f"{WALLET_AUTH_MESSAGE_PREFIX}:{timestamp}"

    def header_value(self) -> str:
        return f"{self.address}:{self.timestamp}:{self.signature}"


# ============================================================================
# x402 v2: payment required / payload
# ============================================================================

class ResourceInfo(X402Model):
    """Describes the resource being paid for."""
    url: str
    description: Optional[str] = None
    mime_type: Optional[str] = None


class PaymentRequirements(X402Model):
    """One accepted way of paying, as offered by the backend (v2).

    Attributes:
        scheme: Payment scheme identifier (e.g. "exact").
        network: CAIP-2 network identifier (e.g. "eip155:8453").
        asset: Token contract address.
        amount: Amount in the token's smallest unit.
        pay_to: Recipient address.
        max_timeout_seconds: Validity window granted to the authorization.
        extra: Scheme-specific data (EIP-712 domain ``name``/``version``).
    """
    scheme: str
    network: str
    asset: str
    amount: str
    pay_to: str
    max_timeout_seconds: int = 600
    extra: Dict[str, Any] = Field(default_factory=dict)

    def get_amount(self) -> str:
        return self.amount


class PaymentRequired(X402Model):
    """v2 payment challenge, normally carried base64-encoded in ``PAYMENT-REQUIRED``."""
    x402_version: Literal[2] = 2
    error: Optional[str] = None
    resource: Optional[ResourceInfo] = None
    accepts: List[PaymentRequirements]
    extensions: Optional[Dict[str, Any]] = None


class PaymentPayload(X402Model):
    """v2 signed payment, sent base64-encoded in ``PAYMENT-SIGNATURE``."""
    x402_version: Literal[2] = 2
    payload: Dict[str, Any]
    accepted: PaymentRequirements
    resource: Optional[ResourceInfo] = None
    extensions: Optional[Dict[str, Any]] = None


# ============================================================================
# x402 v1 (legacy): payment required / payload
# ============================================================================

class PaymentRequirementsV1(X402Model):
    """v1 payment requirement; legacy network names such as ``base-sepolia``."""
    scheme: str
    network: str
    max_amount_required: str
    resource: str
    description: Optional[str] = None
    mime_type: Optional[str] = None
    pay_to: str
    max_timeout_seconds: int = 600
    asset: str
    output_schema: Optional[Dict[str, Any]] = None
    extra: Optional[Dict[str, Any]] = None

    def get_amount(self) -> str:
        return self.max_amount_required


class PaymentRequiredV1(X402Model):
    """v1 payment challenge, carried in the 402 JSON body."""
    x402_version: Literal[1] = 1
    error: Optional[str] = None
    accepts: List[PaymentRequirementsV1]


class PaymentPayloadV1(X402Model):
    """v1 signed payment, sent base64-encoded in ``X-PAYMENT``."""
    x402_version: Literal[1] = 1
    scheme: str
    network: str
    payload: Dict[str, Any]


PaymentRequiredTypes = Union[PaymentRequired, PaymentRequiredV1]
PaymentPayloadTypes = Union[PaymentPayload, PaymentPayloadV1]
PaymentRequirementsTypes = Union[PaymentRequirements, PaymentRequirementsV1]


# ============================================================================
# Decoding helpers
# ============================================================================

def decode_base64_json(value: str) -> Any:
    """
    Decode a base64 header value into JSON data.

    Raises:
        ValueError: If the value is not base64 or does not hold JSON.
    """
    try:
        raw = base64.b64decode(value.strip(), validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"Malformed base64 JSON header: {e}") from e


def parse_payment_required(data: Any) -> PaymentRequiredTypes:
    """
    Validate decoded challenge data against the model for its version.

    Data without ``x402Version`` is treated as v2, matching header payloads.

    Raises:
        ValueError: If the version is unsupported or validation fails.
    """
    if not isinstance(data, dict):
        raise ValueError("Payment requirement must be a JSON object")
    version = X402Version.from_value(data.get("x402Version", X402Version.V2))
    try:
        if version is X402Version.V1:
            return PaymentRequiredV1.model_validate(data)
        return PaymentRequired.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid x402 v{int(version)} payment requirement: {e}") from e

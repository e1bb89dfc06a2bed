from .bases import CanonicalModel, X402Model
from .https import (
    WALLET_AUTH_HEADER,
    WALLET_AUTH_MESSAGE_PREFIX,
    WalletAuthHeader,
    ResourceInfo,
    PaymentRequirements,
    PaymentRequired,
    PaymentPayload,
    PaymentRequirementsV1,
    PaymentRequiredV1,
    PaymentPayloadV1,
    PaymentRequiredTypes,
    PaymentPayloadTypes,
    PaymentRequirementsTypes,
    decode_base64_json,
    parse_payment_required,
)
from .versions import X402Version, PAYMENT_REQUIRED_HEADER, PAYMENT_SIGNATURE_HEADER, X_PAYMENT_HEADER

__all__ = [
    "CanonicalModel",
    "X402Model",
    "WALLET_AUTH_HEADER",
    "WALLET_AUTH_MESSAGE_PREFIX",
    "WalletAuthHeader",
    "ResourceInfo",
    "PaymentRequirements",
    "PaymentRequired",
    "PaymentPayload",
    "PaymentRequirementsV1",
    "PaymentRequiredV1",
    "PaymentPayloadV1",
    "PaymentRequiredTypes",
    "PaymentPayloadTypes",
    "PaymentRequirementsTypes",
    "decode_base64_json",
    "parse_payment_required",
    "X402Version",
    "PAYMENT_REQUIRED_HEADER",
    "PAYMENT_SIGNATURE_HEADER",
    "X_PAYMENT_HEADER",
]

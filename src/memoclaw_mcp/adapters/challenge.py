"""
x402 Payment Challenge Handler

Turns a ``402 Payment Required`` response into the headers of the single
paid retry. The three steps are strictly sequential:

1. ``build_challenge``  - parse the requirement (v2 header or v1/v2 body)
2. ``create_payload``   - pick a payable requirement and sign it
3. ``encode_headers``   - base64-encode the payload under the version's header

The handler only sees responses through a header-lookup callback and the
decoded body, so it does not depend on any HTTP client. Every failure is a
``PaymentChallengeError``: a malformed challenge does not become valid by
retrying.
"""

import json
from typing import Any, Callable, Dict, Optional

from ..engine.exceptions import PaymentChallengeError, SigningError
from ..schemas.https import (
    PaymentPayload,
    PaymentPayloadTypes,
    PaymentPayloadV1,
    PaymentRequiredTypes,
    PaymentRequiredV1,
    decode_base64_json,
    parse_payment_required,
)
from ..schemas.versions import PAYMENT_REQUIRED_HEADER, PAYMENT_SIGNATURE_HEADER, X_PAYMENT_HEADER
from .evm.signatures import WalletSigner
from .registry import SchemeRegistry, register_exact_evm

HeaderLookup = Callable[[str], Optional[str]]


class PaymentChallengeHandler:
    """
    Builds x402 payment headers from 402 challenges.

    Constructed once per client and reused for every challenge; it holds no
    per-request state.

    Usage:
        ```python
        handler = PaymentChallengeHandler.for_wallet(WalletSigner(key))
        info = handler.build_challenge(response.headers.get, response.content)
        payload = await handler.create_payload(info)
        headers = handler.encode_headers(payload)
        ```
    """

    def __init__(self, registry: SchemeRegistry):
        self._registry = registry

    @classmethod
    def for_wallet(cls, signer: WalletSigner) -> "PaymentChallengeHandler":
        """Handler that pays with ``signer`` through the EVM ``exact`` scheme."""
        return cls(register_exact_evm(SchemeRegistry(), signer))

    def build_challenge(self, get_header: HeaderLookup, body: Any = None) -> PaymentRequiredTypes:
        """
        Extract the payment requirement from a 402 response.

        The ``PAYMENT-REQUIRED`` header (v2) takes precedence; otherwise the
        body must be an x402 document (``x402Version`` + ``accepts``).

        Args:
            get_header: Case-insensitive header lookup of the 402 response.
            body: Decoded JSON body, or the raw bytes/str body.

        Raises:
            PaymentChallengeError: If no valid requirement can be found.
        """
        try:
            header = get_header(PAYMENT_REQUIRED_HEADER)
            if header:
                return parse_payment_required(decode_base64_json(header))

            if isinstance(body, (bytes, bytearray)):
                body = body.decode("utf-8") if body else None
            if isinstance(body, str):
                body = json.loads(body) if body.strip() else None
            if isinstance(body, dict) and "x402Version" in body:
                return parse_payment_required(body)
        except ValueError as e:
            raise PaymentChallengeError(f"Malformed payment challenge: {e}") from e

        raise PaymentChallengeError("402 response did not include x402 payment requirements")

    async def create_payload(self, info: PaymentRequiredTypes) -> PaymentPayloadTypes:
        """
        Sign a payment for the first offered requirement we can pay.

        Returns:
            ``PaymentPayload`` for v2 challenges, ``PaymentPayloadV1`` for v1.

        Raises:
            PaymentChallengeError: If nothing is payable or signing fails.
        """
        for requirements in info.accepts:
            client = self._registry.find(requirements.scheme, requirements.network)
            if client is None:
                continue
            try:
                inner = client.create_payment_payload(requirements)
            except SigningError as e:
                raise PaymentChallengeError(f"Failed to sign payment authorization: {e}") from e
            except ValueError as e:
                raise PaymentChallengeError(
                    f"Cannot pay {requirements.scheme} on {requirements.network}: {e}"
                ) from e

            if isinstance(info, PaymentRequiredV1):
                return PaymentPayloadV1(
                    scheme=requirements.scheme,
                    network=requirements.network,
                    payload=inner,
                )
            return PaymentPayload(payload=inner, accepted=requirements, resource=info.resource)

        offered = ", ".join(f"{r.scheme}@{r.network}" for r in info.accepts) or "none"
        raise PaymentChallengeError(
            f"No registered payment scheme matches the offered requirements ({offered})"
        )

    def encode_headers(self, payload: PaymentPayloadTypes) -> Dict[str, str]:
        """
        Encode ``payload`` into request headers.

        Returns:
            ``{"PAYMENT-SIGNATURE": b64}`` for v2, ``{"X-PAYMENT": b64}`` for v1.
        """
        if isinstance(payload, PaymentPayloadV1):
            return {X_PAYMENT_HEADER: payload.to_base64()}
        if isinstance(payload, PaymentPayload):
            return {PAYMENT_SIGNATURE_HEADER: payload.to_base64()}
        raise PaymentChallengeError(f"Unsupported payment payload type: {type(payload).__name__}")

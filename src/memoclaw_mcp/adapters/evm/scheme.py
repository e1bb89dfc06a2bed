"""
EVM client implementation of the x402 ``exact`` payment scheme.

Turns one payment requirement into a signed ERC-3009 authorization for
exactly the requested amount.
"""

import time
from typing import Any, Dict, Optional

from web3 import Web3

from ...schemas.https import PaymentRequirementsTypes
from .constants import get_asset_config, get_evm_chain_id
from .signatures import WalletSigner, sign_erc3009_authorization

SCHEME_EXACT = "exact"

# validAfter is backdated to tolerate clock skew between client and facilitator.
VALID_AFTER_SKEW_SECONDS = 600


def checksum(address: str, field: str) -> str:
    """EIP-55 form of ``address``; ValueError when it is not an EVM address."""
    if not Web3.is_address(address):
        raise ValueError(f"{field} is not a valid EVM address: {address!r}")
    return Web3.to_checksum_address(address)


class ExactEvmScheme:
    """
    x402 ``exact`` scheme for EVM networks (v1 and v2 requirements).

    Attributes:
        scheme: The scheme identifier ("exact").
    """

    scheme = SCHEME_EXACT

    def __init__(self, signer: WalletSigner):
        self._signer = signer

    def create_payment_payload(
        self,
        requirements: PaymentRequirementsTypes,
        now: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Create the signed inner payload for ``requirements``.

        Returns:
            ``{"signature": ..., "authorization": {...}}``; the challenge
            handler wraps it with version, scheme and network.

        Raises:
            ValueError: If the network, amount or EIP-712 domain is unusable.
        """
        chain_id = get_evm_chain_id(requirements.network)
        domain_name, domain_version = self._resolve_domain(chain_id, requirements)

        now = int(time.time()) if now is None else now
        timeout = requirements.max_timeout_seconds or 600

        amount = requirements.get_amount()
        if not str(amount).isdigit():
            raise ValueError(f"Payment amount must be an integer in base units, got {amount!r}")

        payload = sign_erc3009_authorization(
            signer=self._signer,
            token=checksum(requirements.asset, "asset"),
            chain_id=chain_id,
            recipient=checksum(requirements.pay_to, "payTo"),
            value=int(amount),
            valid_after=now - VALID_AFTER_SKEW_SECONDS,
            valid_before=now + timeout,
            domain_name=domain_name,
            domain_version=domain_version,
        )
        return payload.to_dict()

    @staticmethod
    def _resolve_domain(chain_id: int, requirements: PaymentRequirementsTypes):
        extra = dict(requirements.extra or {})
        asset = get_asset_config(chain_id, requirements.asset)
        if asset:
            extra.setdefault("name", asset.name)
            extra.setdefault("version", asset.version)
        if "name" not in extra:
            raise ValueError(
                f"EIP-712 domain name required in extra for asset {requirements.asset}"
            )
        return extra["name"], str(extra.get("version", "1"))

"""
Payment Scheme Registry

Keeps the scheme clients this wallet can pay with, keyed by a network
pattern. ``eip155:*`` covers every CAIP-2 EVM chain; legacy x402 v1 names
(``base-sepolia``) are registered one by one.
"""

from fnmatch import fnmatchcase
from typing import Any, Dict, List, Optional, Protocol, Tuple

from ..schemas.https import PaymentRequirementsTypes
from .evm.constants import V1_NETWORK_CHAIN_IDS
from .evm.scheme import ExactEvmScheme
from .evm.signatures import WalletSigner


class SchemeClient(Protocol):
    """Client side of one x402 payment scheme."""

    scheme: str

    def create_payment_payload(self, requirements: PaymentRequirementsTypes) -> Dict[str, Any]:
        ...


class SchemeRegistry:
    """
    Ordered registry of ``(network_pattern, scheme client)`` pairs.

    Lookups return the first registration whose scheme name matches and
    whose pattern matches the network, so earlier registrations win.
    """

    def __init__(self):
        self._entries: List[Tuple[str, SchemeClient]] = []

    def register(self, network_pattern: str, client: SchemeClient) -> "SchemeRegistry":
        """
        Register ``client`` for networks matching ``network_pattern``.

        Returns:
            The registry itself, so registrations can be chained.
        """
        if not network_pattern:
            raise ValueError("network_pattern must be a non-empty string")
        self._entries.append((network_pattern, client))
        return self

    def find(self, scheme: str, network: str) -> Optional[SchemeClient]:
        for pattern, client in self._entries:
            if client.scheme == scheme and fnmatchcase(network, pattern):
                return client
        return None

    def patterns(self) -> List[str]:
        return [pattern for pattern, _ in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


def register_exact_evm(registry: SchemeRegistry, signer: WalletSigner) -> SchemeRegistry:
    """Register the EVM ``exact`` scheme for CAIP-2 and legacy v1 network names."""
    scheme = ExactEvmScheme(signer)
    registry.register("eip155:*", scheme)
    for name in V1_NETWORK_CHAIN_IDS:
        registry.register(name, scheme)
    return registry

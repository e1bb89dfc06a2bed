"""
EVM Network Configuration

Maps x402 network identifiers to numeric chain IDs and lists the EIP-712
domains of the stablecoins the backend is known to price in. v2 challenges
use CAIP-2 identifiers (``eip155:8453``); v1 challenges use legacy names
(``base-sepolia``).
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class EvmAssetConfig(BaseModel):
    """Token asset configuration."""
    symbol: str
    address: str = Field(..., description="Token contract address")
    name: str = Field(..., description="EIP-712 domain name")
    version: str = Field(..., description="EIP-712 domain version")
    decimals: int = Field(default=6, description="Token decimals")


# Legacy (x402 v1) network names.
V1_NETWORK_CHAIN_IDS: Dict[str, int] = {
    "base": 8453,
    "base-sepolia": 84532,
    "avalanche": 43114,
    "avalanche-fuji": 43113,
    "polygon": 137,
    "polygon-amoy": 80002,
    "sei": 1329,
    "sei-testnet": 1328,
    "iotex": 4689,
}

# Known USDC deployments, keyed by chain ID.
KNOWN_ASSETS: Dict[int, EvmAssetConfig] = {
    8453: EvmAssetConfig(
        symbol="USDC",
        address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        name="USD Coin",
        version="2",
    ),
    84532: EvmAssetConfig(
        symbol="USDC",
        address="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        name="USDC",
        version="2",
    ),
}


def get_evm_chain_id(network: str) -> int:
    """
    Resolve a CAIP-2 (``eip155:<id>``) or legacy network name to a chain ID.

    Raises:
        ValueError: If the identifier is not an EVM network we know.
    """
    if network.startswith("eip155:"):
        reference = network.split(":", 1)[1]
        if not reference.isdigit():
            raise ValueError(f"Invalid CAIP-2 chain reference: {network}")
        return int(reference)
    chain_id = V1_NETWORK_CHAIN_IDS.get(network)
    if chain_id is None:
        raise ValueError(f"Unsupported EVM network: {network}")
    return chain_id


def get_asset_config(chain_id: int, asset: str) -> Optional[EvmAssetConfig]:
    """Return the known asset config for ``asset`` on ``chain_id``, matched case-insensitively."""
    config = KNOWN_ASSETS.get(chain_id)
    if config and config.address.lower() == asset.lower():
        return config
    return None

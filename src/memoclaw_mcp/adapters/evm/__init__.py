from .constants import EvmAssetConfig, V1_NETWORK_CHAIN_IDS, KNOWN_ASSETS, get_evm_chain_id, get_asset_config
from .schemas import ExactAuthorization, ExactEvmPayload
from .scheme import ExactEvmScheme, SCHEME_EXACT
from .signatures import (
    WalletSigner,
    build_erc3009_typed_data,
    sign_erc3009_authorization,
)

__all__ = [
    "EvmAssetConfig",
    "V1_NETWORK_CHAIN_IDS",
    "KNOWN_ASSETS",
    "get_evm_chain_id",
    "get_asset_config",
    "ExactAuthorization",
    "ExactEvmPayload",
    "ExactEvmScheme",
    "SCHEME_EXACT",
    "WalletSigner",
    "build_erc3009_typed_data",
    "sign_erc3009_authorization",
]

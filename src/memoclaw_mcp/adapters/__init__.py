from .challenge import PaymentChallengeHandler, HeaderLookup
from .registry import SchemeRegistry, SchemeClient, register_exact_evm
from .evm import WalletSigner, ExactEvmScheme

__all__ = [
    "PaymentChallengeHandler",
    "HeaderLookup",
    "SchemeRegistry",
    "SchemeClient",
    "register_exact_evm",
    "WalletSigner",
    "ExactEvmScheme",
]

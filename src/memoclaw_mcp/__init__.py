"""
memoclaw-mcp: MCP server for the MemoClaw memory API.

Wallet-authenticated requests with x402 micropayments when the free tier is
exhausted, retried with exponential backoff under a per-attempt timeout.
"""

from .clients import MemoClawClient
from .config import ClientConfig, load_config
from .engine.exceptions import (
    ConfigurationError,
    HttpError,
    MemoClawError,
    NetworkError,
    PaymentChallengeError,
    RequestTimeoutError,
    RetriesExhaustedError,
    SigningError,
    ToolInputError,
    TransportError,
)

__all__ = [
    "MemoClawClient",
    "ClientConfig",
    "load_config",
    "MemoClawError",
    "SigningError",
    "TransportError",
    "RequestTimeoutError",
    "NetworkError",
    "HttpError",
    "PaymentChallengeError",
    "RetriesExhaustedError",
    "ConfigurationError",
    "ToolInputError",
]

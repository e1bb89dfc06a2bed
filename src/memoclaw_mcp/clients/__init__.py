"""
Client module for the MemoClaw API.

Provides the resilient request client that handles wallet authentication,
x402 payments, retries and timeouts.
"""

from .http_client import MemoClawClient, ALLOWED_METHODS

__all__ = ["MemoClawClient", "ALLOWED_METHODS"]

"""
Exception and Error Definitions Module

Defines the exception hierarchy raised by the MemoClaw request client and the
tool layer built on top of it. Every exception carries a ``retryable`` flag
that is decided where the error is raised, so the retry loop in
``MemoClawClient.send`` never has to inspect error messages.

Exception Hierarchy:
    MemoClawError (root)
    ├── SigningError
    ├── TransportError            (retryable)
    │   ├── RequestTimeoutError
    │   └── NetworkError
    ├── HttpError                 (retryable for transient statuses only)
    ├── PaymentChallengeError
    ├── RetriesExhaustedError
    ├── ConfigurationError
    └── ToolInputError
"""

from typing import FrozenSet


# Statuses considered likely to succeed when retried after a delay.
TRANSIENT_STATUSES: FrozenSet[int] = frozenset({408, 429, 502, 503, 504})


class MemoClawError(Exception):
    """
    Root exception class for all project-specific exceptions.

    Attributes:
        retryable: Whether the request client may retry the failed attempt.
    """

    retryable: bool = False


class SigningError(MemoClawError):
    """
    Raised when the wallet credential cannot produce a signature.

    This includes scenarios such as:
    - Malformed or truncated private key
    - Typed-data payload rejected by the signer

    A malformed credential cannot be fixed by retrying.
    """
    pass


class TransportError(MemoClawError):
    """
    Base exception for attempts that produced no HTTP response.
    """

    retryable = True


class RequestTimeoutError(TransportError):
    """
    Raised when a single attempt exceeds the configured deadline.

    Attributes:
        timeout_ms: The per-attempt deadline that elapsed.
    """

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timed out after {timeout_ms}ms")


class NetworkError(TransportError):
    """
    Raised on transport-level failures.

    This includes scenarios such as:
    - Connection refused or reset
    - DNS resolution failure
    - TLS handshake failure
    """
    pass


class HttpError(MemoClawError):
    """
    Raised when the backend answers with a non-2xx status.

    Attributes:
        status: HTTP status code of the final response.
        body_text: Raw response body, used verbatim in the message.
    """

    def __init__(self, status: int, body_text: str = ""):
        self.status = status
        self.body_text = body_text
        super().__init__(f"HTTP {status}: {body_text}")

    @property
    def retryable(self) -> bool:
        return self.status in TRANSIENT_STATUSES


class PaymentChallengeError(MemoClawError):
    """
    Raised when a 402 challenge cannot be turned into payment headers.

    This includes scenarios such as:
    - Missing or undecodable PAYMENT-REQUIRED header and body
    - No accepted requirement matches a registered payment scheme
    - Signing failure while building the payment authorization
    """
    pass


class RetriesExhaustedError(MemoClawError):
    """
    Raised when the retry loop ends without having recorded any error.
    """

    def __init__(self, message: str = "Request failed"):
        super().__init__(message)


class ConfigurationError(MemoClawError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - No private key in the environment or config file
    - Unusable API URL
    """
    pass


class ToolInputError(MemoClawError, ValueError):
    """
    Raised when tool arguments fail validation before any request is sent.
    """
    pass

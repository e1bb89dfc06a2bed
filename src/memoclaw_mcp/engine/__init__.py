from .backoff import backoff_delay, BASE_DELAY_MS, JITTER_CEILING_MS
from .concurrency import with_concurrency, Settled, DEFAULT_FAN_OUT
from .exceptions import (
    TRANSIENT_STATUSES,
    MemoClawError,
    SigningError,
    TransportError,
    RequestTimeoutError,
    NetworkError,
    HttpError,
    PaymentChallengeError,
    RetriesExhaustedError,
    ConfigurationError,
    ToolInputError,
)

__all__ = [
    "backoff_delay",
    "BASE_DELAY_MS",
    "JITTER_CEILING_MS",
    "with_concurrency",
    "Settled",
    "DEFAULT_FAN_OUT",
    "TRANSIENT_STATUSES",
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

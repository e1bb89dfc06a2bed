"""
Retry backoff policy.

Exponential backoff with additive jitter so that concurrent callers that
failed together do not retry in lockstep.
"""

import random
from typing import Callable

BASE_DELAY_MS = 1000
JITTER_CEILING_MS = 500


def backoff_delay(
    attempt_index: int,
    *,
    base_ms: float = BASE_DELAY_MS,
    jitter_ms: float = JITTER_CEILING_MS,
    rand: Callable[[], float] = random.random,
) -> float:
    """
    Compute the wait before retry number ``attempt_index + 1``.

    Args:
        attempt_index: Zero-based index of the retry about to be made.
        base_ms: Delay for the first retry, doubled for each further one.
        jitter_ms: Exclusive upper bound of the random term.
        rand: Source of uniform draws in ``[0, 1)``.

    Returns:
        Delay in milliseconds, in ``[base * 2**i, base * 2**i + jitter)``.

    Raises:
        ValueError: If ``attempt_index`` is negative.
    """
    if attempt_index < 0:
        raise ValueError(f"attempt_index must be >= 0, got {attempt_index}")
    return base_ms * (2 ** attempt_index) + rand() * jitter_ms

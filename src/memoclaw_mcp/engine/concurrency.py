"""
Bounded fan-out for bulk tool operations.

Bulk tools (import, bulk store, namespace deletion...) issue many independent
``send`` calls for one logical operation. ``with_concurrency`` caps how many
of them are in flight at once and collects every outcome instead of failing
fast, so one bad item does not hide the results of the others.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_FAN_OUT = 10


@dataclass
class Settled(Generic[T]):
    """Outcome of one task: either ``value`` or ``error`` is meaningful."""

    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def with_concurrency(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    limit: int = DEFAULT_FAN_OUT,
) -> List[Settled[T]]:
    """
    Run task factories with at most ``limit`` of them awaiting at a time.

    Args:
        tasks: Zero-argument callables returning awaitables.
        limit: Maximum number of concurrently running tasks.

    Returns:
        One ``Settled`` per task, in input order.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    semaphore = asyncio.Semaphore(limit)

    async def run(factory: Callable[[], Awaitable[T]]) -> Settled[T]:
        async with semaphore:
            try:
                return Settled(value=await factory())
            except Exception as e:
                return Settled(error=e)

    return list(await asyncio.gather(*(run(task) for task in tasks)))


def error_message(error: Optional[BaseException]) -> str:
    """Message text of a settled failure, as shown in bulk tool reports."""
    if error is None:
        return ""
    return str(error) or "unknown error"


def values(results: Sequence[Settled[Any]]) -> List[Any]:
    return [r.value for r in results if r.ok]

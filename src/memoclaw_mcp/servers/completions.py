"""
Argument completion for prompts and resource templates.

Completes ``namespace``, ``tag`` and ``memory_type`` arguments. Namespace and
tag lists are fetched through the tool handler and cached for five minutes;
when a refresh fails the last known list (or nothing) is offered instead.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from mcp.types import Completion

from ..engine.exceptions import MemoClawError
from ..tools.catalog import MEMORY_TYPES
from ..tools.handlers import DEFAULT_NAMESPACE_LABEL, ToolHandler

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60
MAX_COMPLETIONS = 100


def entry_names(entries: Iterable[Any], *keys: str) -> List[str]:
    """Names from a list of strings or objects carrying the name under one of ``keys``."""
    names = []
    for entry in entries:
        if isinstance(entry, str):
            name = entry
        elif isinstance(entry, dict):
            name = next((entry[k] for k in keys if entry.get(k)), None)
        else:
            name = None
        if name:
            names.append(str(name))
    return names


def filter_values(values: List[str], partial: str) -> Completion:
    """Case-insensitive substring match, capped at ``MAX_COMPLETIONS``."""
    needle = (partial or "").lower()
    matched = [v for v in values if needle in v.lower()] if needle else list(values)
    return Completion(
        values=matched[:MAX_COMPLETIONS],
        total=len(matched),
        hasMore=len(matched) > MAX_COMPLETIONS,
    )


class CompletionProvider:
    """
    Completes prompt and resource-template arguments by name.

    Args:
        handler: Tool handler used to list namespaces and tags.
        clock: Monotonic clock in seconds.
        ttl: How long a fetched list stays fresh.
    """

    def __init__(
        self,
        handler: ToolHandler,
        clock: Callable[[], float] = time.monotonic,
        ttl: float = CACHE_TTL_SECONDS,
    ):
        self.handler = handler
        self._clock = clock
        self._ttl = ttl
        # name -> (values, expiry)
        self._cache: Dict[str, Tuple[List[str], float]] = {}

    async def complete(self, argument_name: str, partial: str) -> Completion:
        if argument_name == "namespace":
            return filter_values(await self._cached("namespace", self._namespaces), partial)
        if argument_name == "tag":
            return filter_values(await self._cached("tag", self._tags), partial)
        if argument_name == "memory_type":
            return filter_values(MEMORY_TYPES, partial)
        return Completion(values=[])

    async def _namespaces(self) -> List[str]:
        names = entry_names(await self.handler.list_namespaces(), "namespace", "name")
        return [n for n in names if n != DEFAULT_NAMESPACE_LABEL]

    async def _tags(self) -> List[str]:
        return entry_names(await self.handler.list_tags(), "tag", "name")

    async def _cached(self, key: str, load: Callable[[], Awaitable[List[str]]]) -> List[str]:
        cached: Optional[Tuple[List[str], float]] = self._cache.get(key)
        now = self._clock()
        if cached and now < cached[1]:
            return cached[0]
        try:
            values = await load()
        except MemoClawError as e:
            logger.debug("completion list %s unavailable: %s", key, e)
            return cached[0] if cached else []
        self._cache[key] = (values, now + self._ttl)
        return values

"""
Read-only MCP resources.

- ``memoclaw://stats``          usage statistics
- ``memoclaw://namespaces``     namespaces with per-namespace counts
- ``memoclaw://core-memories``  up to 20 pinned, important or frequently used memories

All three use free-tier endpoints and are rendered as JSON documents.
"""

from typing import List

from mcp.types import Resource

from ..formatting import dump_json, extract_list
from ..tools.handlers import ToolHandler, query_string

JSON_MIME_TYPE = "application/json"
CORE_MEMORIES_LIMIT = 20

STATS_URI = "memoclaw://stats"
NAMESPACES_URI = "memoclaw://namespaces"
CORE_MEMORIES_URI = "memoclaw://core-memories"

RESOURCES: List[Resource] = [
    Resource(
        uri=STATS_URI,
        name="Memory Statistics",
        description=(
            "Usage statistics: total memories, pinned count, average importance, "
            "breakdowns by type and namespace. FREE, no API credits used."
        ),
        mimeType=JSON_MIME_TYPE,
    ),
    Resource(
        uri=NAMESPACES_URI,
        name="Namespaces",
        description="All namespaces that contain memories, with per-namespace counts. FREE, no API credits used.",
        mimeType=JSON_MIME_TYPE,
    ),
    Resource(
        uri=CORE_MEMORIES_URI,
        name="Core Memories",
        description=(
            "Your most important memories: high importance, frequently accessed or pinned. "
            "Up to 20 returned. FREE, no API credits used."
        ),
        mimeType=JSON_MIME_TYPE,
    ),
]


async def read_resource(handler: ToolHandler, uri: str) -> str:
    """
    Render the resource at ``uri`` as JSON text.

    Raises:
        ValueError: If ``uri`` is not one of ``RESOURCES``.
        MemoClawError: The underlying API request failed.
    """
    uri = uri.rstrip("/")
    if uri == STATS_URI:
        return dump_json(await handler.fetch("GET", "/v1/stats"))

    if uri == NAMESPACES_URI:
        return dump_json({"namespaces": await handler.list_namespaces()})

    if uri == CORE_MEMORIES_URI:
        result = await handler.fetch("GET", f"/v1/core-memories{query_string({'limit': CORE_MEMORIES_LIMIT})}")
        memories = extract_list(result, "memories", "core_memories", "data")
        return dump_json({"memories": memories, "count": len(memories)})

    raise ValueError(f"Unknown resource: {uri}")

"""
MCP tool catalog.

Each entry maps to one MemoClaw endpoint or to a composite operation built
from several of them (see ``handlers.py``). Annotations tell MCP clients
whether a tool reads, mutates or destroys server-side state.
"""

from typing import Any, Dict, List, Optional, Sequence

from mcp.types import Tool, ToolAnnotations

MEMORY_TYPES = ["correction", "preference", "decision", "project", "observation", "general"]
RELATION_TYPES = ["related_to", "derived_from", "contradicts", "supersedes", "supports"]
SUGGESTION_CATEGORIES = ["stale", "fresh", "hot", "decaying"]


def _string(description: str, enum: Optional[List[str]] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string", "description": description}
    if enum:
        schema["enum"] = enum
    return schema


def _number(description: str) -> Dict[str, Any]:
    return {"type": "number", "description": description}


def _boolean(description: str) -> Dict[str, Any]:
    return {"type": "boolean", "description": description}


def _strings(description: str) -> Dict[str, Any]:
    return {"type": "array", "items": {"type": "string"}, "description": description}


def _object(description: str) -> Dict[str, Any]:
    return {"type": "object", "description": description}


def _array_of(description: str, properties: Dict[str, Any], required: Sequence[str] = ()) -> Dict[str, Any]:
    item: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        item["required"] = list(required)
    return {"type": "array", "items": item, "description": description}


COMMON_FILTERS: Dict[str, Any] = {
    "tags": _strings("Filter by tags (memories must have ALL specified tags)."),
    "namespace": _string("Filter by namespace."),
    "memory_type": _string("Filter by memory type.", MEMORY_TYPES),
    "session_id": _string("Filter by session ID."),
    "agent_id": _string("Filter by agent ID."),
    "after": _string('Only return memories created after this ISO 8601 date, e.g. "2025-01-01T00:00:00Z".'),
}

MESSAGES = _array_of(
    "Conversation messages.",
    {"role": {"type": "string"}, "content": {"type": "string"}},
)

STORE_ITEM: Dict[str, Any] = {
    "content": _string("The text content to remember."),
    "importance": _number("Importance score (0.0-1.0). Default: 0.5."),
    "tags": _strings("Tags for categorization."),
    "namespace": _string("Namespace to isolate this memory."),
    "memory_type": _string("Memory type.", MEMORY_TYPES),
    "pinned": _boolean("Pin to prevent decay."),
    "immutable": _boolean("Make this memory immutable (one-way, cannot be reversed)."),
}

UPDATE_ITEM: Dict[str, Any] = {
    "id": _string("The memory ID to update."),
    "content": _string("New content (re-embeds automatically)."),
    "importance": _number("New importance score (0.0-1.0)."),
    "memory_type": _string("New memory type.", MEMORY_TYPES),
    "namespace": _string("Move memory to a different namespace."),
    "metadata": _object("Replace metadata object."),
    "expires_at": _string("New expiry date (ISO 8601) or null to remove."),
    "pinned": _boolean("Pin or unpin the memory."),
    "tags": _strings("Replace tags array."),
    "immutable": _boolean("Make the memory immutable. One-way: it can no longer be updated or deleted."),
}


def _tool(
    name: str,
    title: str,
    description: str,
    properties: Optional[Dict[str, Any]] = None,
    required: Sequence[str] = (),
    *,
    read_only: bool = False,
    destructive: bool = False,
    idempotent: bool = False,
    open_world: bool = False,
) -> Tool:
    schema: Dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = list(required)
    return Tool(
        name=name,
        description=description,
        inputSchema=schema,
        annotations=ToolAnnotations(
            title=title,
            readOnlyHint=read_only,
            destructiveHint=destructive,
            idempotentHint=idempotent,
            openWorldHint=open_world,
        ),
    )


TOOLS: List[Tool] = [
    _tool(
        "memoclaw_store",
        "Store memory",
        "Store a new memory. The content is embedded for semantic search. Use tags and "
        "namespace to organize memories, importance (0-1) to influence recall ranking and "
        "memory_type to control decay. Pin important memories to prevent decay. Returns "
        "the created memory with its ID. Free tier: 100 calls/wallet.",
        {
            "content": _string("The text content to remember. Be specific and self-contained."),
            "importance": _number("Importance from 0.0 (trivial) to 1.0 (critical). Default: 0.5."),
            "tags": _strings('Tags for categorization and filtering, e.g. ["project-x", "frontend"].'),
            "namespace": _string('Namespace to isolate this memory, e.g. "work" or "personal".'),
            "memory_type": _string(
                'Controls decay rate. "correction" and "preference" decay slowest; '
                '"observation" decays fastest. Default: "general".',
                MEMORY_TYPES,
            ),
            "session_id": _string("Session ID to group memories from the same conversation."),
            "agent_id": _string("Agent ID to scope memories to a specific agent."),
            "pinned": _boolean("If true, the memory is exempt from decay."),
            "expires_at": _string('ISO 8601 date when this memory auto-deletes, e.g. "2025-12-31T00:00:00Z".'),
            "immutable": _boolean("If true, the memory cannot be updated or deleted after creation."),
        },
        ["content"],
    ),
    _tool(
        "memoclaw_recall",
        "Semantic recall",
        "Semantic search: find memories by meaning rather than exact words. Results are "
        "ranked by similarity (0-1); use min_similarity=0.3+ to drop weak matches. Set "
        "include_relations=true to also fetch related memories. Use memoclaw_get when the "
        "ID is known and memoclaw_search for exact keywords.",
        {
            "query": _string("Natural language description of what you are looking for."),
            "limit": _number("Maximum number of results. Default: 5. Max: 50."),
            "min_similarity": _number("Minimum similarity threshold (0.0-1.0). Default: 0."),
            **COMMON_FILTERS,
            "include_relations": _boolean("If true, include related memories in the response."),
        },
        ["query"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_search",
        "Keyword search",
        "Keyword search: find memories containing exact keywords or phrases "
        "(case-insensitive). For similar meanings use memoclaw_recall.",
        {
            "query": _string("Keyword or phrase to search for."),
            "limit": _number("Maximum number of results. Default: 20. Max: 100."),
            **COMMON_FILTERS,
        },
        ["query"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_get",
        "Get memory",
        "Retrieve a single memory by its exact ID.",
        {"id": _string("The memory ID to retrieve.")},
        ["id"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_list",
        "List memories",
        "Browse memories chronologically (newest first), optionally filtered by tags, "
        "namespace, memory_type, session_id or agent_id.",
        {
            "limit": _number("Max results per page. Default: 20. Max: 100."),
            "offset": _number("Pagination offset. Default: 0."),
            **COMMON_FILTERS,
        },
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_delete",
        "Delete memory",
        "Permanently delete a single memory by its ID. This cannot be undone.",
        {"id": _string("The memory ID to delete.")},
        ["id"],
        destructive=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_bulk_delete",
        "Bulk delete memories",
        "Delete multiple memories at once by their IDs. Max 100 IDs per call.",
        {"ids": _strings("Memory IDs to delete. Max 100.")},
        ["ids"],
        destructive=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_update",
        "Update memory",
        "Update an existing memory by its ID. Only provided fields change; updating "
        "content regenerates the embedding.",
        UPDATE_ITEM,
        ["id"],
        idempotent=True,
    ),
    _tool(
        "memoclaw_status",
        "Free tier status",
        "Check the wallet's free tier usage (remaining API calls out of 100).",
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_ingest",
        "Ingest conversation",
        "Bulk-ingest a conversation or raw text. The server extracts facts, deduplicates "
        "and optionally relates them. Provide either messages or text.",
        {
            "messages": MESSAGES,
            "text": _string("Raw text to extract facts from (alternative to messages)."),
            "namespace": _string("Namespace for all extracted memories."),
            "session_id": _string("Session ID for all extracted memories."),
            "agent_id": _string("Agent ID for all extracted memories."),
            "auto_relate": _boolean("Auto-create relations between extracted facts. Default: true."),
        },
    ),
    _tool(
        "memoclaw_extract",
        "Extract facts",
        "Extract structured facts from a conversation without relating them.",
        {
            "messages": MESSAGES,
            "namespace": _string("Namespace for extracted memories."),
            "session_id": _string("Session ID."),
            "agent_id": _string("Agent ID."),
        },
        ["messages"],
    ),
    _tool(
        "memoclaw_consolidate",
        "Consolidate memories",
        "Merge similar or duplicate memories by clustering. Use dry_run=true first to preview.",
        {
            "namespace": _string("Only consolidate within this namespace."),
            "min_similarity": _number("Minimum similarity for duplicates (0.0-1.0)."),
            "mode": _string("Consolidation strategy."),
            "dry_run": _boolean("If true, report what would be merged without merging."),
        },
        destructive=True,
    ),
    _tool(
        "memoclaw_suggested",
        "Suggested memories",
        "Get proactive memory suggestions: stale, fresh, hot or decaying memories.",
        {
            "limit": _number("Max results. Default: 10."),
            "namespace": _string("Filter by namespace."),
            "session_id": _string("Filter by session."),
            "agent_id": _string("Filter by agent."),
            "category": _string("Filter by category.", SUGGESTION_CATEGORIES),
        },
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_create_relation",
        "Create relation",
        "Create a directed relationship between two memories.",
        {
            "memory_id": _string("Source memory ID."),
            "target_id": _string("Target memory ID."),
            "relation_type": _string("Type of relationship.", RELATION_TYPES),
            "metadata": _object("Optional metadata for the relation."),
        },
        ["memory_id", "target_id", "relation_type"],
    ),
    _tool(
        "memoclaw_list_relations",
        "List relations",
        "List all incoming and outgoing relationships of a memory.",
        {"memory_id": _string("Memory ID to list relations for.")},
        ["memory_id"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_delete_relation",
        "Delete relation",
        "Delete a specific relationship between memories.",
        {
            "memory_id": _string("Source memory ID."),
            "relation_id": _string("The relation ID to delete."),
        },
        ["memory_id", "relation_id"],
        destructive=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_export",
        "Export memories",
        "Export all memories as JSON for backup, migration or analysis.",
        {
            "namespace": _string("Only export memories from this namespace."),
            "agent_id": _string("Only export memories from this agent."),
            "format": _string('Export format. Default: "json".', ["json", "jsonl"]),
        },
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_import",
        "Import memories",
        'Import memories from a JSON array. Each object needs a "content" field. Max 100 per call.',
        {
            "memories": _array_of("Memory objects to import. Max 100.", STORE_ITEM, ["content"]),
            "session_id": _string("Session ID applied to all imported memories."),
            "agent_id": _string("Agent ID applied to all imported memories."),
        },
        ["memories"],
    ),
    _tool(
        "memoclaw_bulk_store",
        "Bulk store memories",
        "Store multiple memories in one call, each with its own tags, namespace and "
        "importance. Max 50 per call.",
        {
            "memories": _array_of(
                "Memory objects. Max 50.",
                {**STORE_ITEM, "expires_at": _string("ISO 8601 expiry date.")},
                ["content"],
            ),
            "session_id": _string("Session ID applied to all memories."),
            "agent_id": _string("Agent ID applied to all memories."),
        },
        ["memories"],
    ),
    _tool(
        "memoclaw_count",
        "Count memories",
        "Count memories, optionally filtered. Cheaper than memoclaw_list when only the total matters.",
        {
            "namespace": _string("Count only memories in this namespace."),
            "tags": _strings("Count only memories with ALL of these tags."),
            "agent_id": _string("Count only memories from this agent."),
            "memory_type": _string("Count only memories of this type.", MEMORY_TYPES),
        },
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_delete_namespace",
        "Delete namespace",
        "Delete ALL memories in a namespace. Destructive and irreversible; run "
        "memoclaw_count first to see how many are affected.",
        {
            "namespace": _string("The namespace whose memories will be deleted."),
            "agent_id": _string("Only delete memories from this agent within the namespace."),
        },
        ["namespace"],
        destructive=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_init",
        "Check configuration",
        "Check that MemoClaw is configured: config source, wallet address and free tier "
        "remaining. Call this first to verify the connection.",
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_migrate",
        "Migrate files",
        "Migrate local markdown memory files into MemoClaw. Accepts a file or directory "
        "path, or an array of file objects. Reads .md and .txt files, scanning directories "
        "recursively.",
        {
            "path": _string("Path to a markdown file or directory."),
            "files": _array_of(
                "File objects to migrate.",
                {
                    "filename": _string("Original filename."),
                    "content": _string("File text content."),
                },
                ["content"],
            ),
            "namespace": _string('Namespace for migrated memories. Default: "migrated".'),
            "agent_id": _string("Agent ID for migrated memories."),
            "deduplicate": _boolean("Deduplicate against existing memories. Default: true."),
            "dry_run": _boolean("Preview without storing."),
        },
        open_world=True,
    ),
    _tool(
        "memoclaw_graph",
        "Traverse graph",
        "Traverse the memory graph from a starting memory up to a given depth.",
        {
            "memory_id": _string("Starting memory ID."),
            "depth": _number("Hops to traverse. Default: 1. Max: 3."),
            "relation_type": _string("Only follow this relation type.", RELATION_TYPES),
        },
        ["memory_id"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_pin",
        "Pin memory",
        "Pin a memory to prevent decay. Shortcut for memoclaw_update with pinned=true.",
        {"id": _string("The memory ID to pin.")},
        ["id"],
        idempotent=True,
    ),
    _tool(
        "memoclaw_unpin",
        "Unpin memory",
        "Unpin a memory, re-enabling decay. Shortcut for memoclaw_update with pinned=false.",
        {"id": _string("The memory ID to unpin.")},
        ["id"],
        idempotent=True,
    ),
    _tool(
        "memoclaw_tags",
        "List tags",
        "List all unique tags with counts, most used first.",
        {
            "namespace": _string("Only list tags from this namespace."),
            "agent_id": _string("Only list tags for this agent."),
        },
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_history",
        "Memory history",
        "View the edit history of a memory.",
        {"id": _string("The memory ID to view history for.")},
        ["id"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_namespaces",
        "List namespaces",
        "List all namespaces that contain memories, with counts.",
        {"agent_id": _string("Only list namespaces for this agent.")},
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_context",
        "Get context",
        "Get the memories most relevant to the current situation, selected by an LLM. "
        "Costs $0.01 per call.",
        {
            "query": _string("Describe your current situation or what you need context for."),
            "limit": _number("Max memories. Default: 10. Max: 50."),
            "namespace": _string("Filter by namespace."),
            "session_id": _string("Prioritize memories from this session."),
            "agent_id": _string("Filter by agent."),
        },
        ["query"],
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_batch_update",
        "Batch update memories",
        "Update multiple memories in one call. Max 50 updates. Costs $0.005 per call.",
        {"updates": _array_of("Updates to apply. Max 50.", UPDATE_ITEM, ["id"])},
        ["updates"],
        idempotent=True,
    ),
    _tool(
        "memoclaw_core_memories",
        "Core memories",
        "Get the most important memories: high importance, frequently accessed or pinned. Free.",
        {
            "limit": _number("Max results. Default: 10. Max: 50."),
            "namespace": _string("Filter by namespace."),
            "agent_id": _string("Filter by agent."),
        },
        read_only=True,
        idempotent=True,
    ),
    _tool(
        "memoclaw_stats",
        "Memory statistics",
        "Get memory usage statistics. Free.",
        read_only=True,
        idempotent=True,
    ),
]

TOOL_NAMES = frozenset(tool.name for tool in TOOLS)

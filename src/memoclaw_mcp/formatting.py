"""
Text rendering helpers shared by the tool handlers.

Backend payloads are loosely shaped (fields may be missing, ``null`` or of an
unexpected type), so every helper here tolerates partial input.
"""

import json
from typing import Any, Iterable, List, Mapping, Optional

from .engine.exceptions import ToolInputError

# Server-side limit on memory content, enforced client-side to fail early.
MAX_CONTENT_LENGTH = 8192

UPDATE_FIELDS = (
    "content",
    "importance",
    "memory_type",
    "namespace",
    "metadata",
    "expires_at",
    "pinned",
    "tags",
)

MEMORY_LIST_KEYS = ("memories", "data")


def dump_json(value: Any) -> str:
    """Pretty JSON used for the raw payload appended to tool output."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def tag_list(value: Any) -> List[str]:
    """Tags as strings; a bare string is one tag, anything else but a list is none."""
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(t) for t in value]


def memory_tags(memory: Mapping[str, Any]) -> List[str]:
    tags = memory.get("tags")
    if not tags:
        metadata = memory.get("metadata")
        if isinstance(metadata, Mapping):
            tags = metadata.get("tags")
    return tag_list(tags)


def format_memory(memory: Optional[Mapping[str, Any]]) -> str:
    """
    Render one memory as an indented, human-readable block.

    Args:
        memory: Memory object as returned by the API, possibly partial.

    Returns:
        Multi-line text; ``"(empty memory)"`` when there is nothing to show.
    """
    if not memory:
        return "(empty memory)"

    lines = [f"- {memory.get('content') or '(no content)'}"]
    if memory.get("id"):
        lines.append(f"  id: {memory['id']}")

    similarity = memory.get("similarity")
    if similarity is not None:
        if isinstance(similarity, (int, float)) and not isinstance(similarity, bool):
            lines.append(f"  similarity: {similarity:.3f}")
        else:
            lines.append(f"  similarity: {similarity}")

    if memory.get("importance") is not None:
        lines.append(f"  importance: {memory['importance']}")
    if memory.get("memory_type"):
        lines.append(f"  type: {memory['memory_type']}")
    if memory.get("namespace"):
        lines.append(f"  namespace: {memory['namespace']}")

    tags = memory_tags(memory)
    if tags:
        lines.append(f"  tags: {', '.join(tags)}")
    if memory.get("pinned"):
        lines.append("  pinned")
    if memory.get("expires_at"):
        lines.append(f"  expires: {memory['expires_at']}")
    if memory.get("created_at"):
        lines.append(f"  created: {memory['created_at']}")
    updated = memory.get("updated_at")
    if updated and updated != memory.get("created_at"):
        lines.append(f"  updated: {updated}")
    return "\n".join(lines)


def format_memories(memories: Iterable[Mapping[str, Any]]) -> str:
    return "\n\n".join(format_memory(m) for m in memories)


def unwrap_memory(result: Any) -> Any:
    """Single-memory endpoints answer either ``{"memory": {...}}`` or the memory itself."""
    if isinstance(result, Mapping) and result.get("memory"):
        return result["memory"]
    return result


def extract_list(result: Any, *keys: str) -> List[Any]:
    """First non-empty list found under ``keys`` in ``result``."""
    if not isinstance(result, Mapping):
        return []
    for key in keys or MEMORY_LIST_KEYS:
        value = result.get(key)
        if isinstance(value, list) and value:
            return value
    return []


def validate_content_length(content: str, label: str = "content") -> None:
    """
    Reject content the server would refuse.

    Raises:
        ToolInputError: If ``content`` is longer than ``MAX_CONTENT_LENGTH``.
    """
    if len(content) > MAX_CONTENT_LENGTH:
        raise ToolInputError(
            f"{label} exceeds the {MAX_CONTENT_LENGTH} character limit "
            f"(got {len(content)} chars). Split the content into smaller "
            f"memories or summarize it."
        )


def pick_update_fields(fields: Mapping[str, Any]) -> dict:
    """Keep only fields the update endpoint accepts. An explicit ``None`` clears the field."""
    return {k: v for k, v in fields.items() if k in UPDATE_FIELDS}

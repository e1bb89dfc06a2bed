"""
Tool handlers: translate MCP tool calls into MemoClaw API requests.

Every tool is a coroutine method named after the tool (``memoclaw_store`` is
``_handle_store``). Simple tools map to one ``send`` call; composite tools
(export, bulk operations, graph traversal, migration...) page through the API
or fan requests out through ``with_concurrency``.

Optional endpoints (bulk delete, count, tags, namespaces, migrate, batch
update) are probed first; when the backend answers 404 the handler falls back
to an equivalent built from the core endpoints.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote, urlencode

from mcp.types import TextContent

from ..clients.http_client import MemoClawClient
from ..config import ClientConfig
from ..engine.concurrency import DEFAULT_FAN_OUT, error_message, with_concurrency
from ..engine.exceptions import HttpError, MemoClawError, ToolInputError
from ..formatting import (
    MEMORY_LIST_KEYS,
    UPDATE_FIELDS,
    dump_json,
    extract_list,
    format_memories,
    format_memory,
    memory_tags,
    pick_update_fields,
    tag_list,
    unwrap_memory,
    validate_content_length,
)
from .catalog import TOOL_NAMES

logger = logging.getLogger(__name__)

ToolResult = List[TextContent]

TOOL_PREFIX = "memoclaw_"
PAGE_SIZE = 100
MAX_PAGES = 200
MAX_COUNT_OFFSET = 100_000
MAX_BULK_DELETE = 100
MAX_IMPORT = 100
MAX_BULK_STORE = 50
MAX_BATCH_UPDATE = 50
MAX_GRAPH_DEPTH = 3
MIGRATE_EXTENSIONS = frozenset({".md", ".txt"})
DEFAULT_MIGRATE_NAMESPACE = "migrated"
DEFAULT_FREE_TIER_TOTAL = 100
DEFAULT_NAMESPACE_LABEL = "(default)"

STORE_FIELDS = ("content", "importance", "tags", "namespace", "memory_type", "pinned", "expires_at", "immutable")


def text_result(text: str) -> ToolResult:
    return [TextContent(type="text", text=text)]


def segment(value: Any) -> str:
    """Percent-encode a caller-supplied value for use as one path segment."""
    return quote(str(value), safe="")


def query_string(params: Mapping[str, Any]) -> str:
    """
    Encode query parameters, skipping unset values.

    ``None``, empty strings and empty lists are dropped; lists are joined with
    commas. Returns the string with its leading ``?``, or ``""`` when nothing
    remains.
    """
    pairs = []
    for key, value in params.items():
        if value is None or value == "" or value == []:
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((key, str(value)))
    return f"?{urlencode(pairs)}" if pairs else ""


def compact(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop ``None`` values so they are not sent as JSON ``null``."""
    return {k: v for k, v in body.items() if v is not None}


def is_missing_endpoint(error: BaseException) -> bool:
    return isinstance(error, HttpError) and error.status == 404


def require_text(args: Mapping[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ToolInputError(f"{key} is required and cannot be empty")
    return value


def require_id(args: Mapping[str, Any], key: str = "id") -> str:
    value = args.get(key)
    if value is None or value == "":
        raise ToolInputError(f"{key} is required")
    return str(value)


def require_items(args: Mapping[str, Any], key: str, limit: Optional[int] = None, label: str = "") -> List[Any]:
    items = args.get(key)
    if not isinstance(items, list) or not items:
        raise ToolInputError(f"{key} is required and must be a non-empty array")
    if limit is not None and len(items) > limit:
        raise ToolInputError(f"Maximum {limit} {label or key} per call")
    return items


def require_memory_contents(memories: List[Any]) -> None:
    for i, memory in enumerate(memories):
        content = memory.get("content") if isinstance(memory, Mapping) else None
        if not isinstance(content, str) or not content.strip():
            raise ToolInputError(f"Memory at index {i} has empty content")
        validate_content_length(content, f"Memory at index {i}")


class ToolHandler:
    """
    Dispatches tool calls by name.

    Args:
        client: Request client shared by all tools.
        config: Settings reported by ``memoclaw_init``.
        fan_out: Concurrency limit for bulk operations.
    """

    def __init__(self, client: MemoClawClient, config: ClientConfig, fan_out: int = DEFAULT_FAN_OUT):
        self.client = client
        self.config = config
        self.fan_out = fan_out

    async def call(self, name: str, args: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """
        Run one tool.

        Raises:
            ToolInputError: Unknown tool or invalid arguments.
            MemoClawError: The underlying API request failed.
        """
        handler = self._resolve(name)
        return await handler(dict(args or {}))

    def _resolve(self, name: str) -> Callable[[Dict[str, Any]], Awaitable[ToolResult]]:
        if name not in TOOL_NAMES:
            raise ToolInputError(f"Unknown tool: {name}")
        return getattr(self, f"_handle_{name[len(TOOL_PREFIX):]}")

    async def fetch(self, method: str, path: str, body: Any = None) -> Any:
        """Send one API request; an empty response body reads as ``{}``."""
        result = await self.client.send(method, path, body)
        return result if result is not None else {}

    async def _fan_out(self, calls: List[Callable[[], Awaitable[Any]]]):
        return await with_concurrency(calls, self.fan_out)

    async def _list_page(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.fetch("GET", f"/v1/memories{query_string(params)}")

    async def _iter_all_memories(self, filters: Mapping[str, Any]) -> List[Any]:
        collected: List[Any] = []
        offset = 0
        for _ in range(MAX_PAGES):
            page = extract_list(
                await self._list_page({"limit": PAGE_SIZE, "offset": offset, **filters}),
                *MEMORY_LIST_KEYS,
            )
            collected.extend(page)
            if len(page) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return collected

    # =========================================================================
    # Single memory operations
    # =========================================================================

    async def _handle_store(self, args: Dict[str, Any]) -> ToolResult:
        content = require_text(args, "content")
        validate_content_length(content)
        body = {"content": content}
        for key in ("importance", "pinned", "immutable"):
            if args.get(key) is not None:
                body[key] = args[key]
        for key in ("tags", "namespace", "memory_type", "session_id", "agent_id", "expires_at"):
            if args.get(key):
                body[key] = args[key]
        result = await self.fetch("POST", "/v1/store", body)
        return text_result(f"Memory stored\n{format_memory(unwrap_memory(result))}\n\n{dump_json(result)}")

    async def _handle_get(self, args: Dict[str, Any]) -> ToolResult:
        memory_id = require_id(args)
        result = await self.fetch("GET", f"/v1/memories/{segment(memory_id)}")
        return text_result(f"{format_memory(unwrap_memory(result))}\n\n{dump_json(result)}")

    async def _handle_update(self, args: Dict[str, Any]) -> ToolResult:
        memory_id = require_id(args)
        fields = pick_update_fields({k: v for k, v in args.items() if k != "id"})
        if not fields:
            raise ToolInputError(f"No valid update fields provided. Allowed: {', '.join(UPDATE_FIELDS)}")
        if isinstance(fields.get("content"), str):
            validate_content_length(fields["content"])
        result = await self.fetch("PATCH", f"/v1/memories/{segment(memory_id)}", fields)
        return text_result(
            f"Memory {memory_id} updated\n{format_memory(unwrap_memory(result))}\n\n{dump_json(result)}"
        )

    async def _handle_delete(self, args: Dict[str, Any]) -> ToolResult:
        memory_id = require_id(args)
        result = await self.fetch("DELETE", f"/v1/memories/{segment(memory_id)}")
        return text_result(f"Memory {memory_id} deleted\n\n{dump_json(result)}")

    async def _set_pinned(self, args: Dict[str, Any], pinned: bool) -> ToolResult:
        memory_id = require_id(args)
        result = await self.fetch("PATCH", f"/v1/memories/{segment(memory_id)}", {"pinned": pinned})
        verb = "pinned" if pinned else "unpinned"
        return text_result(f"Memory {memory_id} {verb}\n{format_memory(unwrap_memory(result))}")

    async def _handle_pin(self, args: Dict[str, Any]) -> ToolResult:
        return await self._set_pinned(args, True)

    async def _handle_unpin(self, args: Dict[str, Any]) -> ToolResult:
        return await self._set_pinned(args, False)

    async def _handle_history(self, args: Dict[str, Any]) -> ToolResult:
        memory_id = require_id(args)
        result = await self.fetch("GET", f"/v1/memories/{segment(memory_id)}/history")
        history = extract_list(result, "history", "versions", "data")
        if not history:
            return text_result(f"No edit history found for memory {memory_id}.")

        blocks = []
        for i, entry in enumerate(history, start=1):
            lines = [f"Version {i}"]
            content = entry.get("content")
            if content:
                suffix = "..." if len(content) > 200 else ""
                lines.append(f"  content: {content[:200]}{suffix}")
            if entry.get("importance") is not None:
                lines.append(f"  importance: {entry['importance']}")
            entry_tags = tag_list(entry.get("tags"))
            if entry_tags:
                lines.append(f"  tags: {', '.join(entry_tags)}")
            if entry.get("memory_type"):
                lines.append(f"  type: {entry['memory_type']}")
            if entry.get("namespace"):
                lines.append(f"  namespace: {entry['namespace']}")
            if entry.get("pinned") is not None:
                lines.append(f"  pinned: {str(entry['pinned']).lower()}")
            date = entry.get("changed_at") or entry.get("updated_at") or entry.get("created_at")
            if date:
                lines.append(f"  date: {date}")
            changed = entry.get("changed_fields")
            if changed:
                lines.append(f"  changed: {', '.join(changed) if isinstance(changed, list) else changed}")
            blocks.append("\n".join(lines))

        return text_result(
            f"History for memory {memory_id} ({len(history)} versions):\n\n"
            + "\n\n".join(blocks)
            + f"\n\n---\n{dump_json(result)}"
        )

    # =========================================================================
    # Retrieval
    # =========================================================================

    async def _handle_recall(self, args: Dict[str, Any]) -> ToolResult:
        query = require_text(args, "query")
        filters = {key: args[key] for key in ("tags", "memory_type", "after") if args.get(key)}
        body = compact(
            {
                "query": query,
                "limit": args.get("limit"),
                "min_similarity": args.get("min_similarity"),
                "filters": filters or None,
                "namespace": args.get("namespace"),
                "session_id": args.get("session_id"),
                "agent_id": args.get("agent_id"),
                "include_relations": args.get("include_relations"),
            }
        )
        result = await self.fetch("POST", "/v1/recall", body)
        memories = extract_list(result, "memories")
        if not memories:
            return text_result(f'No memories found for query: "{query}"')
        return text_result(
            f"Found {len(memories)} memories:\n\n{format_memories(memories)}\n\n---\n{dump_json(result)}"
        )

    async def _handle_search(self, args: Dict[str, Any]) -> ToolResult:
        query = require_text(args, "query")
        qs = query_string(
            {
                "q": query,
                "limit": args.get("limit"),
                "namespace": args.get("namespace"),
                "tags": args.get("tags"),
                "memory_type": args.get("memory_type"),
                "session_id": args.get("session_id"),
                "agent_id": args.get("agent_id"),
                "after": args.get("after"),
            }
        )
        result = await self.fetch("GET", f"/v1/memories/search{qs}")
        memories = extract_list(result, *MEMORY_LIST_KEYS)
        if not memories:
            return text_result(f'No memories found containing: "{query}"')
        return text_result(
            f'Found {len(memories)} memories containing "{query}":\n\n'
            f"{format_memories(memories)}\n\n---\n{dump_json(result)}"
        )

    async def _handle_list(self, args: Dict[str, Any]) -> ToolResult:
        keys = ("limit", "offset", "namespace", "memory_type", "tags", "session_id", "agent_id", "after")
        result = await self._list_page({key: args.get(key) for key in keys})
        memories = extract_list(result, *MEMORY_LIST_KEYS)
        total = result.get("total")
        if total is None:
            total = len(memories)
        listing = f"\n\n{format_memories(memories)}" if memories else ""
        return text_result(f"Showing {len(memories)} of {total} memories{listing}\n\n---\n{dump_json(result)}")

    async def _handle_suggested(self, args: Dict[str, Any]) -> ToolResult:
        keys = ("limit", "namespace", "session_id", "agent_id", "category")
        result = await self.fetch("GET", f"/v1/suggested{query_string({k: args.get(k) for k in keys})}")
        suggestions = extract_list(result, "suggestions", "memories")
        category = args.get("category")
        if not suggestions:
            scope = f' for category "{category}"' if category else ""
            return text_result(f"No suggestions found{scope}.")
        scope = f" ({category})" if category else ""
        return text_result(
            f"{len(suggestions)} suggestions{scope}:\n\n{format_memories(suggestions)}\n\n---\n{dump_json(result)}"
        )

    async def _handle_context(self, args: Dict[str, Any]) -> ToolResult:
        query = require_text(args, "query")
        body = compact(
            {
                "query": query,
                "limit": args.get("limit"),
                "namespace": args.get("namespace") or None,
                "session_id": args.get("session_id") or None,
                "agent_id": args.get("agent_id") or None,
            }
        )
        result = await self.fetch("POST", "/v1/context", body)
        memories = extract_list(result, "memories", "context")
        if not memories:
            return text_result(f'No relevant context found for: "{query}"')
        return text_result(
            f'Context for "{query}" ({len(memories)} memories):\n\n'
            f"{format_memories(memories)}\n\n---\n{dump_json(result)}"
        )

    async def _handle_core_memories(self, args: Dict[str, Any]) -> ToolResult:
        keys = ("limit", "namespace", "agent_id")
        result = await self.fetch("GET", f"/v1/core-memories{query_string({k: args.get(k) for k in keys})}")
        memories = extract_list(result, "memories", "core_memories", "data")
        if not memories:
            return text_result(
                "No core memories found. Store important memories with high importance scores or pin them."
            )
        return text_result(
            f"{len(memories)} core memories:\n\n{format_memories(memories)}\n\n---\n{dump_json(result)}"
        )

    async def _handle_export(self, args: Dict[str, Any]) -> ToolResult:
        memories = await self._iter_all_memories(
            {"namespace": args.get("namespace"), "agent_id": args.get("agent_id")}
        )
        if args.get("format") == "jsonl":
            output = "\n".join(json.dumps(m, ensure_ascii=False) for m in memories)
        else:
            output = dump_json(memories)
        return text_result(f"Exported {len(memories)} memories\n\n{output}")

    # =========================================================================
    # Bulk operations
    # =========================================================================

    async def _handle_bulk_delete(self, args: Dict[str, Any]) -> ToolResult:
        ids = require_items(args, "ids", MAX_BULK_DELETE, "IDs")
        errors: List[str] = []
        try:
            result = await self.fetch("POST", "/v1/memories/bulk-delete", {"ids": ids})
            failures = result.get("failed") or []
            succeeded = result.get("deleted", len(ids))
            failed = len(failures)
            errors = [f"{f.get('id')}: {f.get('error') or 'unknown error'}" for f in failures]
        except HttpError as e:
            if not is_missing_endpoint(e):
                raise
            logger.debug("bulk-delete endpoint unavailable, deleting %d memories one by one", len(ids))
            results = await self._fan_out(
                [lambda mid=mid: self.client.send("DELETE", f"/v1/memories/{segment(mid)}") for mid in ids]
            )
            succeeded = sum(1 for r in results if r.ok)
            failed = len(results) - succeeded
            errors = [f"{mid}: {error_message(r.error)}" for mid, r in zip(ids, results) if not r.ok]

        text = f"Bulk delete: {succeeded} succeeded, {failed} failed"
        if errors:
            text += "\n\nErrors:\n" + "\n".join(errors)
        return text_result(text)

    def _store_calls(self, memories: List[Mapping[str, Any]], fields, args: Mapping[str, Any]):
        shared = compact({"session_id": args.get("session_id") or None, "agent_id": args.get("agent_id") or None})

        def build(memory: Mapping[str, Any]) -> Dict[str, Any]:
            body = {key: memory[key] for key in fields if memory.get(key) is not None}
            body.update(shared)
            return body

        return [lambda body=build(m): self.client.send("POST", "/v1/store", body) for m in memories]

    async def _handle_import(self, args: Dict[str, Any]) -> ToolResult:
        memories = require_items(args, "memories", MAX_IMPORT, "memories")
        require_memory_contents(memories)
        fields = ("content", "importance", "tags", "namespace", "memory_type", "pinned", "immutable")
        results = await self._fan_out(self._store_calls(memories, fields, args))

        stored = sum(1 for r in results if r.ok)
        errors = [f"index {i}: {error_message(r.error)}" for i, r in enumerate(results) if not r.ok]
        text = f"Import: {stored} stored, {len(errors)} failed"
        if errors:
            text += "\n\nErrors:\n" + "\n".join(errors)
        return text_result(text)

    async def _handle_bulk_store(self, args: Dict[str, Any]) -> ToolResult:
        memories = require_items(args, "memories", MAX_BULK_STORE, "memories")
        require_memory_contents(memories)
        results = await self._fan_out(self._store_calls(memories, STORE_FIELDS, args))

        stored = [unwrap_memory(r.value) for r in results if r.ok]
        errors = [f"index {i}: {error_message(r.error)}" for i, r in enumerate(results) if not r.ok]
        text = f"Bulk store: {len(stored)} stored, {len(errors)} failed"
        if stored:
            text += f"\n\n{format_memories(stored)}"
        if errors:
            text += "\n\nErrors:\n" + "\n".join(errors)
        return text_result(text)

    async def _handle_batch_update(self, args: Dict[str, Any]) -> ToolResult:
        updates = require_items(args, "updates", MAX_BATCH_UPDATE, "updates")
        for i, update in enumerate(updates):
            if not isinstance(update, Mapping) or not update.get("id"):
                raise ToolInputError(f'Update at index {i} is missing "id"')
            if isinstance(update.get("content"), str):
                validate_content_length(update["content"], f"Update at index {i}")

        try:
            result = await self.fetch("POST", "/v1/memories/batch-update", {"updates": updates})
        except HttpError as e:
            if not is_missing_endpoint(e):
                raise
            logger.debug("batch-update endpoint unavailable, patching %d memories one by one", len(updates))
            return await self._batch_update_one_by_one(updates)

        memories = extract_list(result, "memories")
        updated = result.get("updated", len(memories) if memories else "?")
        text = f"Batch update: {updated} memories updated"
        if memories:
            text += f"\n\n{format_memories(memories)}"
        return text_result(f"{text}\n\n{dump_json(result)}")

    async def _batch_update_one_by_one(self, updates: List[Mapping[str, Any]]) -> ToolResult:
        calls = [
            lambda u=u: self.client.send(
                "PATCH", f"/v1/memories/{segment(u['id'])}", pick_update_fields(u)
            )
            for u in updates
        ]
        results = await self._fan_out(calls)

        memories = [unwrap_memory(r.value) for r in results if r.ok]
        errors = [f"{u['id']}: {error_message(r.error)}" for u, r in zip(updates, results) if not r.ok]
        text = f"Batch update: {len(memories)} updated, {len(errors)} failed"
        if memories:
            text += f"\n\n{format_memories(memories)}"
        if errors:
            text += "\n\nErrors:\n" + "\n".join(errors)
        return text_result(text)

    async def _handle_delete_namespace(self, args: Dict[str, Any]) -> ToolResult:
        namespace = require_text(args, "namespace")
        deleted: List[str] = []
        errors: List[str] = []
        failed_ids = set()

        for _ in range(MAX_PAGES):
            # Failed memories stay listed, so skip past them.
            result = await self._list_page(
                {
                    "limit": PAGE_SIZE,
                    "offset": len(failed_ids),
                    "namespace": namespace,
                    "agent_id": args.get("agent_id"),
                }
            )
            memories = extract_list(result, *MEMORY_LIST_KEYS)
            targets = [m for m in memories if m.get("id") and m["id"] not in failed_ids]
            if not targets:
                break

            results = await self._fan_out(
                [lambda m=m: self.client.send("DELETE", f"/v1/memories/{segment(m['id'])}") for m in targets]
            )
            page_successes = 0
            for memory, outcome in zip(targets, results):
                if outcome.ok:
                    deleted.append(memory["id"])
                    page_successes += 1
                else:
                    failed_ids.add(memory["id"])
                    errors.append(f"{memory['id']}: {error_message(outcome.error)}")
            if len(memories) < PAGE_SIZE or page_successes == 0:
                break

        text = f'Namespace "{namespace}": {len(deleted)} memories deleted'
        if errors:
            text += f", {len(errors)} failed\n\nErrors:\n" + "\n".join(errors[:10])
        return text_result(text)

    # =========================================================================
    # Ingestion
    # =========================================================================

    async def _handle_ingest(self, args: Dict[str, Any]) -> ToolResult:
        if not args.get("messages") and not args.get("text"):
            raise ToolInputError("Either messages or text is required")
        body = compact(
            {
                "messages": args.get("messages"),
                "text": args.get("text"),
                "namespace": args.get("namespace"),
                "session_id": args.get("session_id"),
                "agent_id": args.get("agent_id"),
                "auto_relate": args.get("auto_relate") is not False,
            }
        )
        result = await self.fetch("POST", "/v1/ingest", body)
        count = result.get("memories_created", result.get("count", "?"))
        return text_result(f"Ingested: {count} memories created\n\n{dump_json(result)}")

    async def _handle_extract(self, args: Dict[str, Any]) -> ToolResult:
        messages = require_items(args, "messages")
        body = compact(
            {
                "messages": messages,
                "namespace": args.get("namespace"),
                "session_id": args.get("session_id"),
                "agent_id": args.get("agent_id"),
            }
        )
        result = await self.fetch("POST", "/v1/memories/extract", body)
        return text_result(dump_json(result))

    async def _handle_consolidate(self, args: Dict[str, Any]) -> ToolResult:
        body = compact(
            {
                "namespace": args.get("namespace") or None,
                "min_similarity": args.get("min_similarity"),
                "mode": args.get("mode") or None,
                "dry_run": args.get("dry_run"),
            }
        )
        result = await self.fetch("POST", "/v1/memories/consolidate", body)
        prefix = "Consolidation preview (dry run)" if args.get("dry_run") else "Consolidation complete"
        return text_result(f"{prefix}\n\n{dump_json(result)}")

    async def _handle_migrate(self, args: Dict[str, Any]) -> ToolResult:
        files = args.get("files")
        path = args.get("path")
        if not path and not files:
            raise ToolInputError(
                'Either "path" (file/directory path) or "files" (array of {filename, content}) is required'
            )

        if isinstance(files, list) and files:
            file_list = [
                {"filename": f.get("filename") or f"file-{i}.md", "content": f.get("content") or ""}
                for i, f in enumerate(files)
            ]
        else:
            file_list = await asyncio.to_thread(collect_migration_files, Path(path).expanduser())
        if not file_list:
            return text_result("No .md or .txt files found at the given path.")

        namespace = args.get("namespace") or DEFAULT_MIGRATE_NAMESPACE
        dry_run = bool(args.get("dry_run"))
        body: Dict[str, Any] = {
            "files": file_list,
            "namespace": namespace,
            "deduplicate": args.get("deduplicate") is not False,
        }
        if args.get("agent_id"):
            body["agent_id"] = args["agent_id"]
        if dry_run:
            body["dry_run"] = True

        try:
            result = await self.fetch("POST", "/v1/migrate", body)
        except HttpError as e:
            if not is_missing_endpoint(e):
                raise
            return await self._migrate_via_ingest(file_list, namespace, args.get("agent_id"), dry_run)

        prefix = "Migration preview (dry run)" if dry_run else "Migration complete"
        created = result.get("memories_created", result.get("count", "?"))
        skipped = result.get("duplicates_skipped", 0)
        return text_result(
            f"{prefix}\n\nFiles processed: {len(file_list)}\nMemories created: {created}\n"
            f"Duplicates skipped: {skipped}\n\n{dump_json(result)}"
        )

    async def _migrate_via_ingest(
        self,
        file_list: List[Dict[str, str]],
        namespace: str,
        agent_id: Optional[str],
        dry_run: bool,
    ) -> ToolResult:
        if dry_run:
            listing = "\n".join(f"  - {f['filename']} ({len(f['content'])} chars)" for f in file_list)
            return text_result(
                "Migration preview (dry run, /v1/migrate not available, would use ingest fallback)\n\n"
                f"{len(file_list)} files would be ingested:\n{listing}"
            )

        logger.debug("migrate endpoint unavailable, ingesting %d files one by one", len(file_list))
        created = 0
        errors: List[str] = []
        for f in file_list:
            body = compact({"text": f["content"], "namespace": namespace, "agent_id": agent_id})
            try:
                result = await self.fetch("POST", "/v1/ingest", body)
            except MemoClawError as e:
                errors.append(f"{f['filename']}: {e}")
                continue
            created += result.get("memories_created", result.get("count", 0)) or 0

        text = (
            "Migration complete (via ingest fallback)\n\n"
            f"Files processed: {len(file_list)}\nMemories created: {created}"
        )
        if errors:
            text += "\n\nErrors:\n" + "\n".join(errors)
        return text_result(text)

    # =========================================================================
    # Relations and graph
    # =========================================================================

    async def _handle_create_relation(self, args: Dict[str, Any]) -> ToolResult:
        if not (args.get("memory_id") and args.get("target_id") and args.get("relation_type")):
            raise ToolInputError("memory_id, target_id, and relation_type are all required")
        memory_id, target_id, relation_type = args["memory_id"], args["target_id"], args["relation_type"]
        body = {"target_id": target_id, "relation_type": relation_type}
        if args.get("metadata"):
            body["metadata"] = args["metadata"]
        result = await self.fetch("POST", f"/v1/memories/{segment(memory_id)}/relations", body)
        return text_result(
            f"Relation created: {memory_id} -[{relation_type}]-> {target_id}\n\n{dump_json(result)}"
        )

    async def _handle_list_relations(self, args: Dict[str, Any]) -> ToolResult:
        memory_id = require_id(args, "memory_id")
        result = await self.fetch("GET", f"/v1/memories/{segment(memory_id)}/relations")
        relations = extract_list(result, "relations")
        if not relations:
            return text_result(f"No relations found for memory {memory_id}.")
        lines = [
            f"{r.get('id') or '?'}: {r.get('source_id') or memory_id} "
            f"-[{r.get('relation_type')}]-> {r.get('target_id')}"
            for r in relations
        ]
        return text_result(f"Relations for {memory_id}:\n" + "\n".join(lines) + f"\n\n{dump_json(result)}")

    async def _handle_delete_relation(self, args: Dict[str, Any]) -> ToolResult:
        if not args.get("memory_id") or not args.get("relation_id"):
            raise ToolInputError("memory_id and relation_id are required")
        memory_id, relation_id = args["memory_id"], args["relation_id"]
        result = await self.fetch(
            "DELETE", f"/v1/memories/{segment(memory_id)}/relations/{segment(relation_id)}"
        )
        return text_result(f"Relation {relation_id} deleted\n\n{dump_json(result)}")

    async def _handle_graph(self, args: Dict[str, Any]) -> ToolResult:
        start = require_id(args, "memory_id")
        try:
            depth = int(args.get("depth") or 1)
        except (TypeError, ValueError):
            raise ToolInputError("depth must be a number") from None
        depth = min(max(depth, 1), MAX_GRAPH_DEPTH)
        relation_type = args.get("relation_type")

        visited = set()
        nodes: List[Any] = []
        edges: List[Mapping[str, Any]] = []
        frontier = [start]
        level = 0
        # Breadth-first: depth ``d`` fetches nodes up to ``d`` hops away.
        while level <= depth and frontier:
            next_frontier: List[str] = []
            for node_id in frontier:
                if node_id in visited:
                    continue
                visited.add(node_id)
                try:
                    nodes.append(unwrap_memory(await self.fetch("GET", f"/v1/memories/{segment(node_id)}")))
                except MemoClawError:
                    nodes.append({"id": node_id, "content": "(could not fetch)"})
                if level == depth:
                    continue
                try:
                    relations = extract_list(
                        await self.fetch("GET", f"/v1/memories/{segment(node_id)}/relations"), "relations"
                    )
                except MemoClawError:
                    relations = []
                for relation in relations:
                    if relation_type and relation.get("relation_type") != relation_type:
                        continue
                    edges.append(relation)
                    if relation.get("target_id") == node_id:
                        neighbor = relation.get("source_id")
                    else:
                        neighbor = relation.get("target_id")
                    if neighbor and neighbor not in visited:
                        next_frontier.append(neighbor)
            frontier = next_frontier
            level += 1

        edge_lines = "\n".join(
            f"  {r.get('source_id')} -[{r.get('relation_type')}]-> {r.get('target_id')}" for r in edges
        )
        return text_result(
            f"Graph from {start} (depth {depth}):\n\n{len(nodes)} nodes:\n{format_memories(nodes)}\n\n"
            f"{len(edges)} edges:\n{edge_lines or '  (none)'}"
        )

    # =========================================================================
    # Aggregates
    # =========================================================================

    async def _handle_count(self, args: Dict[str, Any]) -> ToolResult:
        filters = {
            "namespace": args.get("namespace"),
            "tags": args.get("tags"),
            "agent_id": args.get("agent_id"),
            "memory_type": args.get("memory_type"),
        }
        try:
            result = await self.fetch("GET", f"/v1/memories/count{query_string(filters)}")
            total = result.get("count", result.get("total", "unknown"))
        except HttpError as e:
            if not is_missing_endpoint(e):
                raise
            total = await self._count_by_listing(filters)

        labels = []
        if args.get("namespace"):
            labels.append(f"namespace={args['namespace']}")
        if args.get("memory_type"):
            labels.append(f"type={args['memory_type']}")
        if args.get("agent_id"):
            labels.append(f"agent={args['agent_id']}")
        count_tags = tag_list(args.get("tags"))
        if count_tags:
            labels.append(f"tags={','.join(count_tags)}")
        scope = f" ({', '.join(labels)})" if labels else ""
        return text_result(f"Total memories{scope}: {total}")

    async def _count_by_listing(self, filters: Mapping[str, Any]) -> Any:
        probe = await self._list_page({**filters, "limit": 1, "offset": 0})
        if isinstance(probe.get("total"), int):
            return probe["total"]
        if not extract_list(probe, *MEMORY_LIST_KEYS):
            return 0

        counted = 0
        offset = 0
        while offset < MAX_COUNT_OFFSET:
            page = await self._list_page({**filters, "limit": PAGE_SIZE, "offset": offset})
            if isinstance(page.get("total"), int):
                return page["total"]
            items = extract_list(page, *MEMORY_LIST_KEYS)
            counted += len(items)
            if len(items) < PAGE_SIZE:
                return counted
            offset += PAGE_SIZE
        return f"{counted}+"

    async def list_tags(self, filters: Optional[Mapping[str, Any]] = None) -> List[Any]:
        """
        Tag entries from ``/v1/tags``.

        Entries are tag strings or ``{"tag", "count"}`` objects. Without the
        endpoint the tags are counted client-side, most used first.
        """
        filters = dict(filters or {})
        try:
            result = await self.fetch("GET", f"/v1/tags{query_string(filters)}")
        except HttpError as e:
            if not is_missing_endpoint(e):
                raise
            result = {}
        if result.get("tags") is not None:
            return result["tags"]

        counts: Dict[str, int] = {}
        for memory in await self._iter_all_memories(filters):
            for tag in memory_tags(memory):
                counts[tag] = counts.get(tag, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [{"tag": tag, "count": count} for tag, count in ranked]

    async def list_namespaces(self, filters: Optional[Mapping[str, Any]] = None) -> List[Any]:
        """Namespace entries from ``/v1/namespaces``, counted client-side without the endpoint."""
        filters = dict(filters or {})
        try:
            result = await self.fetch("GET", f"/v1/namespaces{query_string(filters)}")
        except HttpError as e:
            if not is_missing_endpoint(e):
                raise
            result = {}
        if result.get("namespaces") is not None:
            return result["namespaces"]

        counts: Dict[str, int] = {}
        for memory in await self._iter_all_memories(filters):
            name = memory.get("namespace") or DEFAULT_NAMESPACE_LABEL
            counts[name] = counts.get(name, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [{"namespace": name, "count": count} for name, count in ranked]

    async def _handle_tags(self, args: Dict[str, Any]) -> ToolResult:
        tags = await self.list_tags({"namespace": args.get("namespace"), "agent_id": args.get("agent_id")})
        if not tags:
            return text_result("No tags found across memories.")
        lines = [
            f"  - {t}" if isinstance(t, str) else f"  - {t.get('tag') or t.get('name')}: {t.get('count')} memories"
            for t in tags
        ]
        return text_result(f"{len(tags)} tags:\n\n" + "\n".join(lines))

    async def _handle_namespaces(self, args: Dict[str, Any]) -> ToolResult:
        namespaces = await self.list_namespaces({"agent_id": args.get("agent_id")})
        if not namespaces:
            return text_result("No memories found, no namespaces to list.")
        lines = [
            f"  - {n}"
            if isinstance(n, str)
            else f"  - {n.get('namespace') or n.get('name') or DEFAULT_NAMESPACE_LABEL}: {n.get('count')} memories"
            for n in namespaces
        ]
        return text_result(f"{len(namespaces)} namespaces:\n\n" + "\n".join(lines))

    async def _handle_stats(self, args: Dict[str, Any]) -> ToolResult:
        result = await self.fetch("GET", "/v1/stats")
        lines = []
        for key, label in (
            ("total_memories", "Total memories"),
            ("pinned_count", "Pinned"),
            ("never_accessed", "Never accessed"),
            ("total_accesses", "Total accesses"),
        ):
            if result.get(key) is not None:
                lines.append(f"{label}: {result[key]}")
        avg = result.get("avg_importance")
        if avg is not None:
            lines.append(f"Avg importance: {avg:.2f}" if isinstance(avg, (int, float)) else f"Avg importance: {avg}")
        if result.get("oldest_memory"):
            lines.append(f"Oldest: {result['oldest_memory']}")
        if result.get("newest_memory"):
            lines.append(f"Newest: {result['newest_memory']}")
        if result.get("by_type"):
            lines.append("\nBy type:")
            lines.extend(f"  - {t.get('memory_type') or t.get('type')}: {t.get('count')}" for t in result["by_type"])
        if result.get("by_namespace"):
            lines.append("\nBy namespace:")
            lines.extend(f"  - {n.get('namespace') or '(default)'}: {n.get('count')}" for n in result["by_namespace"])
        return text_result("Memory Stats\n\n" + "\n".join(lines) + f"\n\n---\n{dump_json(result)}")

    # =========================================================================
    # Account
    # =========================================================================

    async def _free_tier(self) -> Dict[str, Any]:
        return await self.fetch("GET", "/v1/free-tier/status")

    async def _handle_status(self, args: Dict[str, Any]) -> ToolResult:
        data = await self._free_tier()
        remaining = data.get("free_tier_remaining", "unknown")
        total = data.get("free_tier_total", DEFAULT_FREE_TIER_TOTAL)
        if isinstance(remaining, (int, float)) and isinstance(total, (int, float)) and total:
            pct = f"{round(remaining / total * 100)}"
        else:
            pct = "?"
        wallet = data.get("wallet") or self.client.address
        return text_result(f"Wallet: {wallet}\nFree tier: {remaining}/{total} calls remaining ({pct}%)")

    async def _handle_init(self, args: Dict[str, Any]) -> ToolResult:
        checks = [
            f"Private key loaded (source: {self.config.config_source})",
            f"API URL: {self.config.api_url}",
            f"Wallet: {self.client.address}",
        ]
        healthy = True
        try:
            data = await self._free_tier()
        except MemoClawError as e:
            healthy = False
            checks.extend(
                [
                    f"API unreachable: {e}",
                    "\nSetup instructions:",
                    "   1. Run `memoclaw init` (creates ~/.memoclaw/config.json)",
                    "   2. Or set MEMOCLAW_PRIVATE_KEY to an EVM private key (0x...)",
                    "   3. Optionally set MEMOCLAW_URL (default: https://api.memoclaw.com)",
                    "   4. Restart the MCP server",
                ]
            )
        else:
            remaining = data.get("free_tier_remaining", "unknown")
            total = data.get("free_tier_total", DEFAULT_FREE_TIER_TOTAL)
            checks.append("API reachable")
            checks.append(f"Free tier: {remaining}/{total} calls remaining")
            if isinstance(remaining, (int, float)) and remaining <= 0:
                checks.append("Free tier exhausted, x402 payments will be used")

        status = "MemoClaw is ready!" if healthy else "MemoClaw needs configuration"
        return text_result(f"{status}\n\n" + "\n".join(checks))


def collect_migration_files(path: Path) -> List[Dict[str, str]]:
    """
    Read ``.md``/``.txt`` files at ``path``, recursing into directories.

    Hidden entries are skipped.

    Raises:
        ToolInputError: If ``path`` does not exist.
    """
    if not path.exists():
        raise ToolInputError(f"Path not found: {path}")
    if path.is_file():
        if path.suffix.lower() in MIGRATE_EXTENSIONS:
            return [{"filename": path.name, "content": path.read_text(encoding="utf-8")}]
        return []

    collected: List[Dict[str, str]] = []
    for entry in sorted(path.iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            collected.extend(collect_migration_files(entry))
        elif entry.suffix.lower() in MIGRATE_EXTENSIONS:
            collected.append({"filename": entry.name, "content": entry.read_text(encoding="utf-8")})
    return collected

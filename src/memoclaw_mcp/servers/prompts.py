"""
MCP prompts: reusable templates that clients surface as slash commands.

Each prompt fetches what it needs through the tool handler and returns a
single user message that embeds the formatted memories.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent

from ..engine.exceptions import MemoClawError
from ..formatting import MAX_CONTENT_LENGTH, MEMORY_LIST_KEYS, dump_json, extract_list, format_memories
from ..tools.handlers import DEFAULT_NAMESPACE_LABEL, ToolHandler, compact, query_string

logger = logging.getLogger(__name__)

REVIEW_LIMIT = 100
CONTEXT_LIMIT = 20
REPORT_SAMPLE_LIMIT = 50
REPORT_OLDEST_SHOWN = 10


def _namespace_argument(description: str) -> PromptArgument:
    return PromptArgument(name="namespace", description=description, required=False)


PROMPTS: List[Prompt] = [
    Prompt(
        name="review-memories",
        description=(
            "Review and consolidate memories in a namespace. Shows duplicates, "
            "stale items and suggestions for cleanup."
        ),
        arguments=[_namespace_argument("Namespace to review (omit for default namespace)")],
    ),
    Prompt(
        name="load-context",
        description=(
            "Load relevant memories for a task. Performs semantic recall and "
            "returns a context-ready summary."
        ),
        arguments=[
            PromptArgument(name="task", description="Description of the task you need context for", required=True),
            _namespace_argument("Namespace to search (omit for default namespace)"),
        ],
    ),
    Prompt(
        name="memory-report",
        description=(
            "Generate a summary report of memory stats, namespace breakdown, "
            "stale items and optimization suggestions."
        ),
        arguments=[_namespace_argument("Namespace to report on (omit for all namespaces)")],
    ),
    Prompt(
        name="migrate-files",
        description=(
            "Guided migration from .md files to MemoClaw. Provides step-by-step "
            "instructions and the right CLI commands."
        ),
        arguments=[
            PromptArgument(name="file_path", description="Path to the .md file or directory to migrate", required=True),
            _namespace_argument("Target namespace for imported memories"),
        ],
    ),
]

PROMPT_NAMES = frozenset(p.name for p in PROMPTS)


def user_prompt(description: str, text: str) -> GetPromptResult:
    return GetPromptResult(
        description=description,
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )


def _required(arguments: Mapping[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not value:
        raise ValueError(f"{key} argument is required")
    return value


def _memory_list(memories: List[Any], empty: str) -> str:
    return format_memories(memories) if memories else empty


class PromptBuilder:
    """
    Renders the prompts in ``PROMPTS``.

    Usage:
        ```python
        result = await PromptBuilder(handler).get("load-context", {"task": "deploy"})
        ```
    """

    def __init__(self, handler: ToolHandler):
        self.handler = handler

    async def get(self, name: str, arguments: Optional[Mapping[str, str]] = None) -> GetPromptResult:
        """
        Raises:
            ValueError: Unknown prompt or a missing required argument.
            MemoClawError: The underlying API request failed.
        """
        if name not in PROMPT_NAMES:
            raise ValueError(f"Unknown prompt: {name}")
        build = getattr(self, "_" + name.replace("-", "_"))
        return await build(dict(arguments or {}))

    async def _review_memories(self, args: Dict[str, Any]) -> GetPromptResult:
        namespace = args.get("namespace")
        result = await self.handler.fetch(
            "GET", f"/v1/memories{query_string({'limit': REVIEW_LIMIT, 'namespace': namespace})}"
        )
        memories = extract_list(result, *MEMORY_LIST_KEYS)
        label = f'namespace "{namespace}"' if namespace else "default namespace"

        text = (
            f"Review the following {len(memories)} memories in {label}. Identify:\n"
            "1. **Duplicates**: memories with very similar content that could be consolidated\n"
            "2. **Stale items**: memories that seem outdated or no longer relevant\n"
            "3. **Low-value**: memories with low importance that add little value\n"
            "4. **Suggestions**: specific actions to clean up and optimize this memory store\n\n"
            "For each suggestion, mention the memory ID so the user can act on it.\n\n"
            f"---\n\n{_memory_list(memories, '(no memories found)')}"
        )
        return user_prompt(f"Review memories in {label}", text)

    async def _load_context(self, args: Dict[str, Any]) -> GetPromptResult:
        task = _required(args, "task")
        namespace = args.get("namespace")
        result = await self.handler.fetch(
            "POST", "/v1/recall", compact({"query": task, "limit": CONTEXT_LIMIT, "namespace": namespace or None})
        )
        memories = extract_list(result, *MEMORY_LIST_KEYS)
        scope = f" (namespace: {namespace})" if namespace else ""

        text = (
            f"I need to work on the following task:\n\n**{task}**\n\n"
            f"Here are the {len(memories)} most relevant memories from my store{scope}:\n\n"
            f"---\n\n{_memory_list(memories, '(no relevant memories found)')}\n\n---\n\n"
            "Based on these memories, provide a brief context summary highlighting "
            "the most important information relevant to this task. Note any potential "
            "conflicts or outdated information."
        )
        return user_prompt(f"Load context for: {task}", text)

    async def _memory_report(self, args: Dict[str, Any]) -> GetPromptResult:
        namespace = args.get("namespace")
        stats = await self.handler.fetch("GET", "/v1/stats")

        try:
            namespaces = await self.handler.list_namespaces()
        except MemoClawError as e:
            logger.debug("namespace breakdown unavailable for report: %s", e)
            namespaces = []

        oldest = extract_list(
            await self.handler.fetch(
                "GET",
                "/v1/memories"
                + query_string(
                    {"limit": REPORT_SAMPLE_LIMIT, "sort": "created_at", "order": "asc", "namespace": namespace}
                ),
            ),
            *MEMORY_LIST_KEYS,
        )

        if namespaces:
            ns_text = "\n".join(
                f"- {n}"
                if isinstance(n, str)
                else f"- {n.get('namespace') or n.get('name') or DEFAULT_NAMESPACE_LABEL}: {n.get('count')} memories"
                for n in namespaces
            )
        else:
            ns_text = "(no namespace data available)"
        scope = f' (namespace: "{namespace}")' if namespace else ""

        text = (
            f"Generate a health report for my MemoClaw memory store{scope}.\n\n"
            f"## Stats\n```json\n{dump_json(stats)}\n```\n\n"
            f"## Namespaces\n{ns_text}\n\n"
            f"## Oldest Memories (potential stale)\n{_memory_list(oldest[:REPORT_OLDEST_SHOWN], '(none)')}\n\n"
            "Based on this data, provide:\n"
            "1. **Overview**: total memories, storage health\n"
            "2. **Namespace analysis**: which namespaces are most and least active\n"
            "3. **Stale memory candidates**: oldest items that might need review\n"
            "4. **Optimization tips**: actionable suggestions to improve memory quality"
        )
        description = "Memory store report" + (f' for "{namespace}"' if namespace else "")
        return user_prompt(description, text)

    async def _migrate_files(self, args: Dict[str, Any]) -> GetPromptResult:
        file_path = _required(args, "file_path")
        namespace = args.get("namespace")
        ns_flag = f" --namespace {namespace}" if namespace else ""
        target = f"**Target namespace:** `{namespace}`\n" if namespace else ""

        text = (
            "I want to migrate my memory/knowledge from markdown files to MemoClaw.\n\n"
            f"**Source:** `{file_path}`\n{target}\n"
            "Guide me through the migration process. Here's what I need:\n\n"
            "1. **Preview**: what the migration will do:\n"
            f"   ```bash\n   memoclaw migrate {file_path}{ns_flag} --dry-run\n   ```\n\n"
            "2. **Execute**: run the actual migration:\n"
            f"   ```bash\n   memoclaw migrate {file_path}{ns_flag}\n   ```\n\n"
            "3. **Verify**: check the imported memories:\n"
            f"   ```bash\n   memoclaw list{ns_flag} --limit 20\n   ```\n\n"
            "**Important notes:**\n"
            "- Each section/heading in the .md file becomes a separate memory\n"
            f"- Maximum {MAX_CONTENT_LENGTH} characters per memory\n"
            "- Migration uses an LLM to extract structured memories (costs $0.01/call)\n"
            "- Use `--dry-run` first to preview what will be imported\n\n"
            "Would you like to proceed with the preview first?"
        )
        return user_prompt(f"Migration guide for {file_path}", text)

"""
MCP prompt tests against a routed fake API.
"""

import pytest

from memoclaw_mcp.engine.exceptions import HttpError
from memoclaw_mcp.servers import PROMPTS, PromptBuilder
from memoclaw_mcp.tools import ToolHandler

from mocks import FakeApi, make_config


def make_builder(routes=None):
    api = FakeApi(routes)
    return PromptBuilder(ToolHandler(api, make_config())), api


def message_text(result):
    assert len(result.messages) == 1
    message = result.messages[0]
    assert message.role == "user"
    return message.content.text


class TestPromptCatalog:

    def test_names(self):
        assert [p.name for p in PROMPTS] == ["review-memories", "load-context", "memory-report", "migrate-files"]

    def test_required_arguments(self):
        required = {p.name: [a.name for a in p.arguments if a.required] for p in PROMPTS}
        assert required == {
            "review-memories": [],
            "load-context": ["task"],
            "memory-report": [],
            "migrate-files": ["file_path"],
        }


class TestPromptBuilder:

    @pytest.mark.asyncio
    async def test_review_memories(self):
        builder, api = make_builder(
            {("GET", "/v1/memories"): {"memories": [{"id": "m1", "content": "Uses vim"}]}}
        )

        result = await builder.get("review-memories", {"namespace": "dev"})

        assert result.description == 'Review memories in namespace "dev"'
        text = message_text(result)
        assert text.startswith('Review the following 1 memories in namespace "dev".')
        assert "- Uses vim\n  id: m1" in text
        assert api.calls[0][2] == {"limit": "100", "namespace": "dev"}

    @pytest.mark.asyncio
    async def test_review_memories_empty_store(self):
        builder, api = make_builder({("GET", "/v1/memories"): {"memories": []}})

        result = await builder.get("review-memories")

        assert result.description == "Review memories in default namespace"
        assert message_text(result).endswith("(no memories found)")
        assert api.calls[0][2] == {"limit": "100"}

    @pytest.mark.asyncio
    async def test_load_context_recalls_for_task(self):
        builder, api = make_builder(
            {("POST", "/v1/recall"): {"memories": [{"id": "m1", "content": "Deploys run on Fridays", "similarity": 0.9}]}}
        )

        result = await builder.get("load-context", {"task": "plan the deploy", "namespace": "ops"})

        assert result.description == "Load context for: plan the deploy"
        text = message_text(result)
        assert "**plan the deploy**" in text
        assert "1 most relevant memories from my store (namespace: ops)" in text
        assert "similarity: 0.900" in text
        assert api.calls[0][3] == {"query": "plan the deploy", "limit": 20, "namespace": "ops"}

    @pytest.mark.asyncio
    async def test_load_context_omits_empty_namespace(self):
        builder, api = make_builder({("POST", "/v1/recall"): {}})

        text = message_text(await builder.get("load-context", {"task": "x", "namespace": ""}))

        assert "(no relevant memories found)" in text
        assert api.calls[0][3] == {"query": "x", "limit": 20}

    @pytest.mark.asyncio
    async def test_load_context_requires_task(self):
        builder, api = make_builder()
        with pytest.raises(ValueError, match="task argument is required"):
            await builder.get("load-context", {})
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_memory_report(self):
        oldest = [{"id": f"m{i}", "content": f"old {i}"} for i in range(12)]
        builder, api = make_builder(
            {
                ("GET", "/v1/stats"): {"total_memories": 12},
                ("GET", "/v1/namespaces"): {"namespaces": [{"namespace": "work", "count": 12}]},
                ("GET", "/v1/memories"): {"memories": oldest},
            }
        )

        result = await builder.get("memory-report", {"namespace": "work"})

        assert result.description == 'Memory store report for "work"'
        text = message_text(result)
        assert '"total_memories": 12' in text
        assert "- work: 12 memories" in text
        assert "old 9" in text
        assert "old 10" not in text
        assert api.calls[-1][2] == {"limit": "50", "sort": "created_at", "order": "asc", "namespace": "work"}

    @pytest.mark.asyncio
    async def test_memory_report_without_namespace_data(self):
        builder, _ = make_builder(
            {
                ("GET", "/v1/stats"): {},
                ("GET", "/v1/namespaces"): HttpError(500, "boom"),
                ("GET", "/v1/memories"): {"memories": []},
            }
        )

        text = message_text(await builder.get("memory-report"))

        assert "## Namespaces\n(no namespace data available)" in text
        assert "## Oldest Memories (potential stale)\n(none)" in text

    @pytest.mark.asyncio
    async def test_migrate_files_makes_no_requests(self):
        builder, api = make_builder()

        result = await builder.get("migrate-files", {"file_path": "notes/", "namespace": "kb"})

        text = message_text(result)
        assert result.description == "Migration guide for notes/"
        assert "memoclaw migrate notes/ --namespace kb --dry-run" in text
        assert "Maximum 8192 characters per memory" in text
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_migrate_files_requires_path(self):
        builder, _ = make_builder()
        with pytest.raises(ValueError, match="file_path argument is required"):
            await builder.get("migrate-files", {"namespace": "kb"})

    @pytest.mark.asyncio
    async def test_unknown_prompt(self):
        builder, _ = make_builder()
        with pytest.raises(ValueError, match="Unknown prompt: nope"):
            await builder.get("nope", {})

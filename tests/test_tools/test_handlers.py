"""
Tool handler tests against a routed fake API.

Usage:
    pytest tests/test_tools/test_handlers.py -v
"""

import json

import pytest

from memoclaw_mcp.engine.exceptions import HttpError, NetworkError, ToolInputError
from memoclaw_mcp.formatting import MAX_CONTENT_LENGTH
from memoclaw_mcp.tools import TOOLS, ToolHandler, query_string, segment

from mocks import TEST_ADDRESS, FakeApi, make_config


def make_handler(routes=None, **config):
    api = FakeApi(routes)
    return ToolHandler(api, make_config(**config)), api


def text_of(result):
    assert len(result) == 1
    assert result[0].type == "text"
    return result[0].text


def memories(count, start=0, **fields):
    return [{"id": f"m{i}", "content": f"memory {i}", **fields} for i in range(start, start + count)]


class TestDispatch:

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        handler, _ = make_handler()
        with pytest.raises(ToolInputError, match="Unknown tool: memoclaw_nope"):
            await handler.call("memoclaw_nope", {})

    @pytest.mark.asyncio
    async def test_every_catalog_tool_has_a_handler(self):
        handler, _ = make_handler()
        for tool in TOOLS:
            assert callable(handler._resolve(tool.name))

    @pytest.mark.asyncio
    async def test_none_arguments_are_accepted(self):
        handler, api = make_handler({("GET", "/v1/stats"): {"total_memories": 3}})
        assert "Total memories: 3" in text_of(await handler.call("memoclaw_stats", None))

    @pytest.mark.asyncio
    async def test_api_errors_propagate(self):
        handler, _ = make_handler({("GET", "/v1/stats"): NetworkError("Network error: refused")})
        with pytest.raises(NetworkError):
            await handler.call("memoclaw_stats", {})


class TestHelpers:

    def test_query_string_skips_unset(self):
        qs = query_string({"q": "a b", "limit": 0, "namespace": None, "tags": [], "after": ""})
        assert qs == "?q=a+b&limit=0"

    def test_query_string_joins_lists(self):
        assert query_string({"tags": ["x", "y"]}) == "?tags=x%2Cy"

    def test_query_string_empty(self):
        assert query_string({"namespace": None}) == ""

    def test_segment_escapes_slashes(self):
        assert segment("a/b?c") == "a%2Fb%3Fc"


class TestStore:

    @pytest.mark.asyncio
    async def test_store_body(self):
        handler, api = make_handler({("POST", "/v1/store"): {"memory": {"id": "m1", "content": "hi"}}})

        text = text_of(
            await handler.call(
                "memoclaw_store",
                {"content": "hi", "importance": 0, "tags": ["a"], "namespace": "", "pinned": False},
            )
        )

        assert api.calls == [("POST", "/v1/store", {}, {"content": "hi", "importance": 0, "tags": ["a"], "pinned": False})]
        assert text.startswith("Memory stored\n- hi")
        assert "id: m1" in text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   ", 42])
    async def test_content_required(self, content):
        handler, api = make_handler()
        with pytest.raises(ToolInputError):
            await handler.call("memoclaw_store", {"content": content})
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_content_length_limit(self):
        handler, api = make_handler()
        with pytest.raises(ToolInputError, match="8192 character limit"):
            await handler.call("memoclaw_store", {"content": "x" * (MAX_CONTENT_LENGTH + 1)})
        assert api.calls == []


class TestRetrieval:

    @pytest.mark.asyncio
    async def test_recall_builds_filters(self):
        handler, api = make_handler({("POST", "/v1/recall"): {"memories": memories(2, similarity=0.91234)}})

        text = text_of(
            await handler.call(
                "memoclaw_recall",
                {"query": "coffee", "limit": 5, "tags": ["drinks"], "after": "2025-01-01", "namespace": "home"},
            )
        )

        body = api.calls[0][3]
        assert body == {
            "query": "coffee",
            "limit": 5,
            "filters": {"tags": ["drinks"], "after": "2025-01-01"},
            "namespace": "home",
        }
        assert text.startswith("Found 2 memories:")
        assert "similarity: 0.912" in text

    @pytest.mark.asyncio
    async def test_recall_empty(self):
        handler, _ = make_handler({("POST", "/v1/recall"): {"memories": []}})
        text = text_of(await handler.call("memoclaw_recall", {"query": "nothing"}))
        assert text == 'No memories found for query: "nothing"'

    @pytest.mark.asyncio
    async def test_search_query_params(self):
        handler, api = make_handler({("GET", "/v1/memories/search"): {"data": memories(1)}})

        text = text_of(await handler.call("memoclaw_search", {"query": "tea", "tags": ["a", "b"], "limit": 3}))

        assert api.calls[0][2] == {"q": "tea", "limit": "3", "tags": "a,b"}
        assert 'Found 1 memories containing "tea"' in text

    @pytest.mark.asyncio
    async def test_get_escapes_id(self):
        handler, api = make_handler()
        with pytest.raises(HttpError):
            await handler.call("memoclaw_get", {"id": "../stats"})
        assert api.raw_paths == ["/v1/memories/..%2Fstats"]

    @pytest.mark.asyncio
    async def test_list_reports_total(self):
        handler, api = make_handler({("GET", "/v1/memories"): {"memories": memories(2), "total": 10}})

        text = text_of(await handler.call("memoclaw_list", {"limit": 2, "offset": 0}))

        assert text.startswith("Showing 2 of 10 memories")
        assert api.calls[0][2] == {"limit": "2", "offset": "0"}

    @pytest.mark.asyncio
    async def test_export_pages_until_short_page(self):
        pages = {"0": memories(100), "100": memories(100, 100), "200": memories(3, 200)}
        handler, api = make_handler(
            {("GET", "/v1/memories"): lambda body, params: {"memories": pages[params["offset"]]}}
        )

        text = text_of(await handler.call("memoclaw_export", {"format": "jsonl", "namespace": "work"}))

        assert text.startswith("Exported 203 memories")
        assert len(api.calls) == 3
        assert all(c[2]["namespace"] == "work" and c[2]["limit"] == "100" for c in api.calls)
        lines = text.split("\n\n", 1)[1].splitlines()
        assert json.loads(lines[-1])["id"] == "m202"


class TestUpdate:

    @pytest.mark.asyncio
    async def test_only_allowed_fields_are_sent(self):
        handler, api = make_handler({("PATCH", "/v1/memories/m1"): {"id": "m1", "content": "new"}})

        await handler.call(
            "memoclaw_update",
            {"id": "m1", "content": "new", "expires_at": None, "immutable": True, "bogus": 1},
        )

        assert api.calls[0][3] == {"content": "new", "expires_at": None}

    @pytest.mark.asyncio
    async def test_no_fields(self):
        handler, _ = make_handler()
        with pytest.raises(ToolInputError, match="No valid update fields"):
            await handler.call("memoclaw_update", {"id": "m1", "bogus": True})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool,pinned", [("memoclaw_pin", True), ("memoclaw_unpin", False)])
    async def test_pin_shortcuts(self, tool, pinned):
        handler, api = make_handler({("PATCH", "/v1/memories/m1"): {"memory": {"id": "m1", "pinned": pinned}}})

        text = text_of(await handler.call(tool, {"id": "m1"}))

        assert api.calls[0][3] == {"pinned": pinned}
        assert text.startswith(f"Memory m1 {'pinned' if pinned else 'unpinned'}")


class TestBulk:

    @pytest.mark.asyncio
    async def test_bulk_delete_endpoint(self):
        handler, api = make_handler(
            {("POST", "/v1/memories/bulk-delete"): {"deleted": 1, "failed": [{"id": "b", "error": "locked"}]}}
        )

        text = text_of(await handler.call("memoclaw_bulk_delete", {"ids": ["a", "b"]}))

        assert text == "Bulk delete: 1 succeeded, 1 failed\n\nErrors:\nb: locked"
        assert len(api.calls) == 1

    @pytest.mark.asyncio
    async def test_bulk_delete_falls_back_on_404(self):
        handler, api = make_handler(
            {
                ("DELETE", "/v1/memories/a"): {"deleted": True},
                ("DELETE", "/v1/memories/b"): HttpError(409, "immutable"),
            }
        )

        text = text_of(await handler.call("memoclaw_bulk_delete", {"ids": ["a", "b"]}))

        assert text.startswith("Bulk delete: 1 succeeded, 1 failed")
        assert "b: HTTP 409: immutable" in text

    @pytest.mark.asyncio
    async def test_bulk_delete_other_errors_propagate(self):
        handler, api = make_handler({("POST", "/v1/memories/bulk-delete"): HttpError(500, "boom")})
        with pytest.raises(HttpError):
            await handler.call("memoclaw_bulk_delete", {"ids": ["a"]})
        assert len(api.calls) == 1

    @pytest.mark.asyncio
    async def test_bulk_delete_limit(self):
        handler, _ = make_handler()
        with pytest.raises(ToolInputError, match="Maximum 100"):
            await handler.call("memoclaw_bulk_delete", {"ids": [str(i) for i in range(101)]})

    @pytest.mark.asyncio
    async def test_import_reports_per_index(self):
        def store(body, params):
            if body["content"] == "bad":
                return HttpError(422, "rejected")
            return {"memory": {"id": "new", **body}}

        handler, api = make_handler({("POST", "/v1/store"): store})

        text = text_of(
            await handler.call(
                "memoclaw_import",
                {"memories": [{"content": "ok"}, {"content": "bad"}], "agent_id": "agent-1"},
            )
        )

        assert text == "Import: 1 stored, 1 failed\n\nErrors:\nindex 1: HTTP 422: rejected"
        assert all(c[3]["agent_id"] == "agent-1" for c in api.calls)

    @pytest.mark.asyncio
    async def test_import_validates_before_sending(self):
        handler, api = make_handler()
        with pytest.raises(ToolInputError, match="index 1 has empty content"):
            await handler.call("memoclaw_import", {"memories": [{"content": "ok"}, {"content": " "}]})
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_bulk_store_limit_and_fields(self):
        handler, api = make_handler({("POST", "/v1/store"): lambda body, params: {"memory": body}})

        with pytest.raises(ToolInputError, match="Maximum 50"):
            await handler.call("memoclaw_bulk_store", {"memories": [{"content": "x"}] * 51})

        text = text_of(
            await handler.call(
                "memoclaw_bulk_store",
                {"memories": [{"content": "x", "expires_at": "2030-01-01", "unknown": 1}]},
            )
        )
        assert api.calls[0][3] == {"content": "x", "expires_at": "2030-01-01"}
        assert text.startswith("Bulk store: 1 stored, 0 failed")

    @pytest.mark.asyncio
    async def test_batch_update_falls_back_to_patch(self):
        handler, api = make_handler(
            {("PATCH", "/v1/memories/m1"): lambda body, params: {"memory": {"id": "m1", **body}}}
        )

        text = text_of(
            await handler.call(
                "memoclaw_batch_update",
                {"updates": [{"id": "m1", "importance": 0.9, "bogus": 1}, {"id": "m2", "pinned": True}]},
            )
        )

        assert ("PATCH", "/v1/memories/m1", {}, {"importance": 0.9}) in api.calls
        assert text.startswith("Batch update: 1 updated, 1 failed")
        assert "m2: HTTP 404: Not Found" in text

    @pytest.mark.asyncio
    async def test_batch_update_requires_ids(self):
        handler, _ = make_handler()
        with pytest.raises(ToolInputError, match='index 0 is missing "id"'):
            await handler.call("memoclaw_batch_update", {"updates": [{"content": "x"}]})

    @pytest.mark.asyncio
    async def test_delete_namespace_skips_failures(self):
        store = {m["id"]: m for m in memories(3)}

        def listing(body, params):
            remaining = sorted(store)
            offset = int(params["offset"])
            return {"memories": [{"id": i} for i in remaining[offset:offset + 100]]}

        def delete(mid):
            def run(body, params):
                if mid == "m1":
                    return HttpError(403, "immutable")
                store.pop(mid)
                return {"deleted": True}
            return run

        routes = {("GET", "/v1/memories"): listing}
        routes.update({("DELETE", f"/v1/memories/{mid}"): delete(mid) for mid in list(store)})
        handler, api = make_handler(routes)

        text = text_of(await handler.call("memoclaw_delete_namespace", {"namespace": "scratch"}))

        assert text.startswith('Namespace "scratch": 2 memories deleted, 1 failed')
        assert "m1: HTTP 403: immutable" in text
        assert list(store) == ["m1"]


class TestAggregates:

    @pytest.mark.asyncio
    async def test_count_endpoint(self):
        handler, api = make_handler({("GET", "/v1/memories/count"): {"count": 42}})
        text = text_of(await handler.call("memoclaw_count", {"namespace": "work", "tags": ["a"]}))
        assert text == "Total memories (namespace=work, tags=a): 42"

    @pytest.mark.asyncio
    async def test_count_with_single_string_tag(self):
        handler, api = make_handler({("GET", "/v1/memories/count"): {"count": 3}})
        text = text_of(await handler.call("memoclaw_count", {"tags": "urgent"}))
        assert text == "Total memories (tags=urgent): 3"
        assert api.calls[0][2] == {"tags": "urgent"}

    @pytest.mark.asyncio
    async def test_history_renders_non_string_tags(self):
        handler, _ = make_handler(
            {("GET", "/v1/memories/m1/history"): {"history": [{"content": "v1", "tags": [2024, "q1"]}]}}
        )
        text = text_of(await handler.call("memoclaw_history", {"id": "m1"}))
        assert "  tags: 2024, q1" in text

    @pytest.mark.asyncio
    async def test_count_falls_back_to_list_total(self):
        handler, api = make_handler({("GET", "/v1/memories"): {"memories": memories(1), "total": 7}})
        text = text_of(await handler.call("memoclaw_count", {}))
        assert text == "Total memories: 7"
        assert api.calls[-1][2] == {"limit": "1", "offset": "0"}

    @pytest.mark.asyncio
    async def test_count_falls_back_to_paging(self):
        pages = {"0": memories(100), "100": memories(5, 100)}

        def listing(body, params):
            if params["limit"] == "1":
                return {"memories": memories(1)}
            return {"memories": pages[params["offset"]]}

        handler, _ = make_handler({("GET", "/v1/memories"): listing})
        assert text_of(await handler.call("memoclaw_count", {})) == "Total memories: 105"

    @pytest.mark.asyncio
    async def test_tags_client_side_aggregation(self):
        handler, _ = make_handler(
            {
                ("GET", "/v1/memories"): {
                    "memories": [
                        {"id": "1", "tags": ["a", "b"]},
                        {"id": "2", "tags": ["a"]},
                        {"id": "3", "metadata": {"tags": ["a"]}},
                    ]
                }
            }
        )
        text = text_of(await handler.call("memoclaw_tags", {}))
        assert text == "2 tags:\n\n  - a: 3 memories\n  - b: 1 memories"

    @pytest.mark.asyncio
    async def test_tags_endpoint(self):
        handler, _ = make_handler({("GET", "/v1/tags"): {"tags": [{"tag": "x", "count": 2}, "y"]}})
        text = text_of(await handler.call("memoclaw_tags", {}))
        assert text == "2 tags:\n\n  - x: 2 memories\n  - y"

    @pytest.mark.asyncio
    async def test_namespaces_fallback_default_name(self):
        handler, _ = make_handler(
            {("GET", "/v1/memories"): {"memories": [{"id": "1"}, {"id": "2", "namespace": "w"}, {"id": "3"}]}}
        )
        text = text_of(await handler.call("memoclaw_namespaces", {}))
        assert text == "2 namespaces:\n\n  - (default): 2 memories\n  - w: 1 memories"

    @pytest.mark.asyncio
    async def test_stats(self):
        handler, _ = make_handler(
            {
                ("GET", "/v1/stats"): {
                    "total_memories": 5,
                    "avg_importance": 0.456,
                    "by_type": [{"memory_type": "general", "count": 5}],
                }
            }
        )
        text = text_of(await handler.call("memoclaw_stats", {}))
        assert "Avg importance: 0.46" in text
        assert "  - general: 5" in text


class TestGraph:

    @pytest.mark.asyncio
    async def test_depth_is_clamped_and_cycles_skipped(self):
        relations = {
            "a": [{"source_id": "a", "target_id": "b", "relation_type": "supports"}],
            "b": [
                {"source_id": "a", "target_id": "b", "relation_type": "supports"},
                {"source_id": "b", "target_id": "c", "relation_type": "contradicts"},
            ],
        }
        routes = {}
        for mid in "abc":
            routes[("GET", f"/v1/memories/{mid}")] = {"memory": {"id": mid, "content": mid.upper()}}
            routes[("GET", f"/v1/memories/{mid}/relations")] = {"relations": relations.get(mid, [])}
        handler, api = make_handler(routes)

        text = text_of(await handler.call("memoclaw_graph", {"memory_id": "a", "depth": 1}))

        assert text.startswith("Graph from a (depth 1):\n\n2 nodes:")
        assert "1 edges:" in text
        assert "/v1/memories/b/relations" not in api.paths()

        text = text_of(await handler.call("memoclaw_graph", {"memory_id": "a", "depth": 9}))
        assert "(depth 3)" in text
        assert "3 nodes:" in text

    @pytest.mark.asyncio
    async def test_relation_type_filter_and_missing_nodes(self):
        handler, _ = make_handler(
            {
                ("GET", "/v1/memories/a"): {"id": "a", "content": "A"},
                ("GET", "/v1/memories/a/relations"): {
                    "relations": [
                        {"source_id": "a", "target_id": "gone", "relation_type": "supports"},
                        {"source_id": "a", "target_id": "x", "relation_type": "contradicts"},
                    ]
                },
            }
        )

        text = text_of(
            await handler.call("memoclaw_graph", {"memory_id": "a", "relation_type": "supports"})
        )

        assert "(could not fetch)" in text
        assert "x" not in text.split("edges:")[1]


class TestMigrate:

    @pytest.mark.asyncio
    async def test_reads_markdown_files(self, tmp_path):
        (tmp_path / "notes.md").write_text("# notes")
        (tmp_path / "skip.json").write_text("{}")
        (tmp_path / ".hidden.md").write_text("secret")
        sub = tmp_path / "sub"
        sub.mkdir()
        (sub / "todo.txt").write_text("buy milk")

        handler, api = make_handler({("POST", "/v1/migrate"): {"memories_created": 2}})

        text = text_of(await handler.call("memoclaw_migrate", {"path": str(tmp_path)}))

        body = api.calls[0][3]
        assert sorted(f["filename"] for f in body["files"]) == ["notes.md", "todo.txt"]
        assert body["namespace"] == "migrated"
        assert body["deduplicate"] is True
        assert "Memories created: 2" in text

    @pytest.mark.asyncio
    async def test_falls_back_to_ingest(self):
        handler, api = make_handler({("POST", "/v1/ingest"): {"memories_created": 3}})

        text = text_of(
            await handler.call(
                "memoclaw_migrate",
                {"files": [{"filename": "a.md", "content": "A"}, {"content": "B"}], "namespace": "old"},
            )
        )

        assert text.startswith("Migration complete (via ingest fallback)")
        assert "Memories created: 6" in text
        assert api.paths("POST").count("/v1/ingest") == 2

    @pytest.mark.asyncio
    async def test_dry_run_fallback_sends_nothing_else(self):
        handler, api = make_handler()

        text = text_of(
            await handler.call("memoclaw_migrate", {"files": [{"content": "abc"}], "dry_run": True})
        )

        assert "file-0.md (3 chars)" in text
        assert api.paths() == ["/v1/migrate"]

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path):
        handler, _ = make_handler()
        with pytest.raises(ToolInputError, match="Path not found"):
            await handler.call("memoclaw_migrate", {"path": str(tmp_path / "nope")})

    @pytest.mark.asyncio
    async def test_requires_input(self):
        handler, _ = make_handler()
        with pytest.raises(ToolInputError):
            await handler.call("memoclaw_migrate", {})


class TestAccount:

    @pytest.mark.asyncio
    async def test_status(self):
        handler, _ = make_handler(
            {("GET", "/v1/free-tier/status"): {"free_tier_remaining": 25, "free_tier_total": 100}}
        )
        text = text_of(await handler.call("memoclaw_status", {}))
        assert text == f"Wallet: {TEST_ADDRESS}\nFree tier: 25/100 calls remaining (25%)"

    @pytest.mark.asyncio
    async def test_init_healthy_and_exhausted(self):
        handler, _ = make_handler({("GET", "/v1/free-tier/status"): {"free_tier_remaining": 0}})
        text = text_of(await handler.call("memoclaw_init", {}))
        assert text.startswith("MemoClaw is ready!")
        assert "x402 payments will be used" in text
        assert TEST_ADDRESS in text

    @pytest.mark.asyncio
    async def test_init_unreachable(self):
        handler, _ = make_handler({("GET", "/v1/free-tier/status"): NetworkError("Network error: refused")})
        text = text_of(await handler.call("memoclaw_init", {}))
        assert text.startswith("MemoClaw needs configuration")
        assert "API unreachable: Network error: refused" in text

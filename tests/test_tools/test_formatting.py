"""
Formatting helper tests.
"""

import pytest

from memoclaw_mcp.engine.exceptions import ToolInputError
from memoclaw_mcp.formatting import (
    MAX_CONTENT_LENGTH,
    extract_list,
    format_memory,
    pick_update_fields,
    tag_list,
    unwrap_memory,
    validate_content_length,
)


class TestFormatMemory:

    def test_full_memory(self):
        text = format_memory(
            {
                "id": "m1",
                "content": "Prefers tea",
                "similarity": 0.87654,
                "importance": 0.8,
                "memory_type": "preference",
                "namespace": "home",
                "tags": ["drinks", "morning"],
                "pinned": True,
                "expires_at": "2030-01-01",
                "created_at": "2025-01-01",
                "updated_at": "2025-02-01",
            }
        )

        assert text.splitlines() == [
            "- Prefers tea",
            "  id: m1",
            "  similarity: 0.877",
            "  importance: 0.8",
            "  type: preference",
            "  namespace: home",
            "  tags: drinks, morning",
            "  pinned",
            "  expires: 2030-01-01",
            "  created: 2025-01-01",
            "  updated: 2025-02-01",
        ]

    @pytest.mark.parametrize("memory", [None, {}])
    def test_empty(self, memory):
        assert format_memory(memory) == "(empty memory)"

    def test_missing_content(self):
        assert format_memory({"id": "m1"}).startswith("- (no content)")

    def test_zero_importance_is_shown(self):
        assert "importance: 0" in format_memory({"content": "x", "importance": 0})

    def test_non_numeric_similarity(self):
        assert "similarity: high" in format_memory({"content": "x", "similarity": "high"})

    def test_metadata_tags_fallback(self):
        assert "tags: a" in format_memory({"content": "x", "metadata": {"tags": ["a"]}})

    def test_unchanged_updated_at_hidden(self):
        text = format_memory({"content": "x", "created_at": "t", "updated_at": "t"})
        assert "updated" not in text


class TestHelpers:

    def test_content_at_limit_is_accepted(self):
        validate_content_length("x" * MAX_CONTENT_LENGTH)

    def test_content_over_limit_names_label(self):
        with pytest.raises(ToolInputError, match="Memory at index 3 exceeds"):
            validate_content_length("x" * (MAX_CONTENT_LENGTH + 1), "Memory at index 3")

    def test_unwrap_memory(self):
        assert unwrap_memory({"memory": {"id": "a"}}) == {"id": "a"}
        assert unwrap_memory({"id": "a"}) == {"id": "a"}

    def test_extract_list_first_non_empty(self):
        assert extract_list({"memories": [], "data": [1]}, "memories", "data") == [1]
        assert extract_list(None, "memories") == []

    def test_pick_update_fields(self):
        assert pick_update_fields({"id": "x", "tags": [], "immutable": True, "expires_at": None}) == {
            "tags": [],
            "expires_at": None,
        }


class TestTagList:

    def test_list_values_become_strings(self):
        assert tag_list(["a", 2, None]) == ["a", "2", "None"]

    def test_bare_string_is_one_tag(self):
        assert tag_list("urgent") == ["urgent"]

    @pytest.mark.parametrize("value", [None, "", {"a": 1}, 5])
    def test_other_values_are_no_tags(self, value):
        assert tag_list(value) == []

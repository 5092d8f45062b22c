"""Tests for core.providers.guards -- JSON output repair and extraction."""

import pytest

from core.providers.base import LLMJSONError
from core.providers.guards import JSONOutputGuard


class TestStripFences:
    def test_json_fence(self):
        assert JSONOutputGuard.strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_fence(self):
        assert JSONOutputGuard.strip_fences('```\n[1]\n```') == "[1]"

    def test_no_fence(self):
        assert JSONOutputGuard.strip_fences('  {"a": 1} ') == '{"a": 1}'


class TestEnforce:
    def test_plain_object(self):
        assert JSONOutputGuard.enforce('{"a": 1}') == {"a": 1}

    def test_leading_prose(self):
        assert JSONOutputGuard.enforce('Sonuç: {"a": 1}') == {"a": 1}

    def test_truncated_object_repaired(self):
        result = JSONOutputGuard.enforce('{"a": 1, "b": {"c": 2', stop_reason="MAX_TOKENS")
        assert result == {"a": 1}

    def test_no_object_raises(self):
        with pytest.raises(LLMJSONError) as exc_info:
            JSONOutputGuard.enforce("[1, 2]")
        assert exc_info.value.raw_text == "[1, 2]"


class TestEnforceArray:
    def test_plain_array(self):
        raw = '[{"businessName": "A"}, {"businessName": "B"}]'
        assert JSONOutputGuard.enforce_array(raw) == [
            {"businessName": "A"},
            {"businessName": "B"},
        ]

    def test_fenced_array(self):
        raw = '```json\n[{"businessName": "A"}]\n```'
        assert JSONOutputGuard.enforce_array(raw) == [{"businessName": "A"}]

    def test_non_dict_items_dropped(self):
        assert JSONOutputGuard.enforce_array('[{"a": 1}, 2, "x"]') == [{"a": 1}]

    @pytest.mark.parametrize("key", ["businesses", "results", "isletmeler"])
    def test_wrapped_array(self, key):
        raw = '{"%s": [{"businessName": "A"}]}' % key
        assert JSONOutputGuard.enforce_array(raw) == [{"businessName": "A"}]

    def test_single_object(self):
        assert JSONOutputGuard.enforce_array('{"businessName": "A"}') == [{"businessName": "A"}]

    def test_ndjson_text(self):
        raw = '{"businessName": "A"}\n{"businessName": "B"}\n'
        assert [b["businessName"] for b in JSONOutputGuard.enforce_array(raw)] == ["A", "B"]

    def test_truncated_array_keeps_complete_items(self):
        raw = '[{"businessName": "A"}, {"businessName": "B"}, {"businessName": "C'
        result = JSONOutputGuard.enforce_array(raw, stop_reason="MAX_TOKENS")
        assert result == [{"businessName": "A"}, {"businessName": "B"}]

    def test_blank_returns_empty(self):
        assert JSONOutputGuard.enforce_array("   ") == []

    def test_no_json_raises(self):
        with pytest.raises(LLMJSONError):
            JSONOutputGuard.enforce_array("Bu bölgede işletme bulunamadı.")


class TestSystemPromptSuffix:
    def test_mentions_json(self):
        assert "JSON" in JSONOutputGuard.system_prompt_suffix()

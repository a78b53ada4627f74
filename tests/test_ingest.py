"""Tests for recovering pathways from model output."""

import json

import pytest

from pathflow.errors import InvalidShape, MalformedPayload
from pathflow.pathway.ingest import aggressive_clean, clean, parse_model_output, strip_fence

SMART_FENCED = (
    "```json\n"
    "{“nodes”: [{“id”: “g”, “type”: “greeting”,\n"
    "   “data”: {“text”: “Hi, it’s Ana from Acme”}}],\n"
    " “edges”: []}\n"
    "```"
)


class TestStages:
    def test_strip_fence_with_language(self):
        assert strip_fence('  ```json\n{"a": 1}\n```  ') == '{"a": 1}'

    def test_strip_fence_without_language(self):
        assert strip_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_fence_leaves_plain_text(self):
        assert strip_fence('  {"a": 1}\n') == '{"a": 1}'

    def test_aggressive_clean(self):
        assert aggressive_clean("“hi” \n\n  ‘there’") == "\"hi\" 'there'"


class TestParse:
    def test_plain_json_needs_one_stage(self):
        raw = json.dumps({"nodes": [{"id": "1", "type": "greeting", "data": {"text": "I’m Ana"}}], "edges": []})
        parsed = parse_model_output(raw)
        assert parsed.aggressive is None
        assert parsed.data["nodes"][0]["data"]["text"] == "I’m Ana"

    def test_fenced_smart_quotes_recover(self):
        parsed = parse_model_output(SMART_FENCED)
        assert parsed.aggressive is not None
        assert parsed.cleaned.startswith("{“nodes")
        assert parsed.data["nodes"][0]["data"]["text"] == "Hi, it's Ana from Acme"

    def test_prose_is_malformed(self):
        raw = "Sure! Here is a friendly call flow that greets the caller and asks about Medicare."
        with pytest.raises(MalformedPayload) as exc_info:
            parse_model_output(raw)
        err = exc_info.value
        assert err.raw == raw
        assert err.cleaned == raw
        assert err.aggressive == raw

    def test_malformed_keeps_all_variants(self):
        raw = "```json\n{“nodes”: [\n  oops\n```"
        with pytest.raises(MalformedPayload) as exc_info:
            parse_model_output(raw)
        err = exc_info.value
        assert err.raw == raw
        assert err.cleaned == "{“nodes”: [\n  oops"
        assert err.aggressive == '{"nodes": [ oops'


class TestShape:
    @pytest.mark.parametrize(
        "raw",
        [
            '{"nodes": [], "edges": []}',
            '{"edges": []}',
            '{"nodes": [{"id": "1", "type": "greeting"}]}',
            '{"nodes": [{"id": "1"}], "edges": {}}',
            "[1, 2, 3]",
        ],
    )
    def test_invalid_shape(self, raw):
        with pytest.raises(InvalidShape):
            parse_model_output(raw)

    def test_shape_error_is_not_a_parse_error(self):
        with pytest.raises(InvalidShape) as exc_info:
            parse_model_output('{"nodes": []}')
        assert not isinstance(exc_info.value, MalformedPayload)
        assert exc_info.value.parsed == {"nodes": []}
        assert exc_info.value.raw == '{"nodes": []}'

    def test_empty_edges_are_fine(self):
        p = clean('{"nodes": [{"id": "1", "type": "greeting", "data": {"text": "Hi"}}], "edges": []}')
        assert [n.id for n in p.nodes] == ["1"]
        assert p.edges == []


class TestClean:
    def test_returns_pathway(self):
        p = clean(SMART_FENCED)
        assert p.nodes[0].kind == "greeting"
        assert p.nodes[0].text == "Hi, it's Ana from Acme"

"""
Unit tests for ResponseExtractor.
"""

import pytest
from prometheus_client import REGISTRY

from invocation_layer.validation.exceptions import ExtractionError
from invocation_layer.validation.extractor import (
    ResponseExtractor,
    extract_json,
    find_balanced_object,
)


class TestResponseExtractor:
    """Test suite for payload extraction."""

    def setup_method(self):
        self.extractor = ResponseExtractor()

    def test_fenced_json_block(self):
        result = self.extractor.extract('```json\n{"a":1}\n```')

        assert result == {"a": 1}

    def test_plain_fenced_block(self):
        result = self.extractor.extract('Result:\n```\n{"panel": 2}\n```\nThanks')

        assert result == {"panel": 2}

    def test_fenced_block_wins_over_bare_object(self):
        text = 'Draft: {"draft": true}\n```json\n{"final": true}\n```'

        assert self.extractor.extract(text) == {"final": True}

    def test_unparseable_fence_falls_back_to_embedded_object(self):
        text = '```\nnot json at all\n```\nBut here: {"a": 1}'

        assert self.extractor.extract(text) == {"a": 1}

    def test_bare_object_in_prose(self):
        result = self.extractor.extract('Here is data: {"a":1} done')

        assert result == {"a": 1}

    def test_nested_object(self):
        text = 'Identity: {"character": {"hair": "red", "traits": ["calm"]}} end'

        assert self.extractor.extract(text) == {"character": {"hair": "red", "traits": ["calm"]}}

    def test_braces_inside_strings_are_ignored(self):
        text = 'Output {"caption": "a } inside { text", "n": 1} trailing } brace'

        assert self.extractor.extract(text) == {"caption": "a } inside { text", "n": 1}

    def test_escaped_quote_inside_string(self):
        text = r'{"quote": "she said \"hi}\"", "ok": true}'

        assert self.extractor.extract(text) == {"quote": 'she said "hi}"', "ok": True}

    def test_stray_closing_brace_after_object(self):
        text = '{"a": {"b": 1} } extra }'
        result = self.extractor.extract(text)

        assert result == {"a": {"b": 1}}

    def test_no_braces_raises(self):
        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract("I cannot help with that request.")

        error = exc_info.value
        assert "No valid JSON found" in str(error)
        assert error.raw_text == "I cannot help with that request."
        assert error.details["content_snippet"] == "I cannot help with that request."

    def test_invalid_json_raises_with_parse_error(self):
        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract("{not: valid}")

        assert "parse_error" in exc_info.value.details

    def test_json_array_is_rejected(self):
        with pytest.raises(ExtractionError):
            self.extractor.extract("```json\n[1, 2, 3]\n```")

    @pytest.mark.parametrize("content", ["", "   \n\t  "])
    def test_empty_content_raises(self, content):
        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract(content)

        assert "empty or whitespace-only" in str(exc_info.value)

    def test_snippet_truncated_to_500_chars(self):
        text = "x" * 2000

        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract(text)

        assert len(exc_info.value.details["content_snippet"]) == 500
        assert exc_info.value.raw_text == text


def test_find_balanced_object_unclosed():
    assert find_balanced_object('{"a": 1', 0) is None


def test_find_balanced_object_from_offset():
    text = 'xx {"a": {}} yy'

    assert find_balanced_object(text, 3) == '{"a": {}}'


def test_extract_json_shortcut():
    assert extract_json('Sure! {"ok": true}') == {"ok": True}


def failure_count(reason: str) -> float:
    return REGISTRY.get_sample_value("extraction_failures_total", {"reason": reason}) or 0.0


def test_non_object_candidate_not_counted_when_later_candidate_parses():
    before = failure_count("not_json_object")

    result = ResponseExtractor().extract('```json\n[1, 2]\n```\nFinal: {"ok": true}')

    assert result == {"ok": True}
    assert failure_count("not_json_object") == before


def test_non_object_failure_counted_once():
    before_non_object = failure_count("not_json_object")
    before_no_payload = failure_count("no_payload")

    with pytest.raises(ExtractionError):
        ResponseExtractor().extract("```json\n[1, 2, 3]\n```")

    assert failure_count("not_json_object") == before_non_object + 1
    assert failure_count("no_payload") == before_no_payload

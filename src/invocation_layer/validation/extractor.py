"""
Structured payload extraction from free-form model output.

Models are inconsistent about wrapping JSON in a fenced block versus
embedding bare JSON in prose, so extraction is two-tier:
1. Fenced code block (```json ... ``` or plain ```), interior trimmed
2. First balanced top-level {...} object in the raw text
If neither parses, ExtractionError is raised carrying the raw text.
"""

import json
import re
from typing import Any, Iterator, Optional

import structlog

from invocation_layer.monitoring.metrics import extraction_failures_total
from .exceptions import ExtractionError

logger = structlog.get_logger(__name__)

FENCED_BLOCK_PATTERN = re.compile(r"```[ \t]*(?:[\w+-]+)?[ \t]*\r?\n?([\s\S]*?)```")
NON_OBJECT_PREFIX = "Expected object"


class ResponseExtractor:
    """
    Locates and parses a JSON object embedded in model output.

    Raises ExtractionError when no object can be found.
    """

    def extract(self, raw_text: str) -> dict[str, Any]:
        """
        Extract the structured payload.

        Args:
            raw_text: Raw model output

        Returns:
            Parsed JSON object

        Raises:
            ExtractionError: No parseable JSON object in the text
        """
        if not raw_text or not raw_text.strip():
            extraction_failures_total.labels(reason="empty_content").inc()
            raise ExtractionError(
                "Model response is empty or whitespace-only",
                raw_text=raw_text,
                parse_error="Empty content",
            )

        last_parse_error: Optional[str] = None
        saw_non_object = False

        for block in self._fenced_blocks(raw_text):
            parsed, last_parse_error = self._try_parse(block)
            saw_non_object = saw_non_object or _is_non_object(last_parse_error)
            if parsed is not None:
                logger.debug("Extracted payload from fenced block", keys=len(parsed))
                return parsed

        for candidate in self._object_candidates(raw_text):
            parsed, error = self._try_parse(candidate)
            if parsed is not None:
                logger.debug("Extracted payload from embedded object", keys=len(parsed))
                return parsed
            saw_non_object = saw_non_object or _is_non_object(error)
            last_parse_error = error or last_parse_error

        reason = "not_json_object" if saw_non_object else "no_payload"
        extraction_failures_total.labels(reason=reason).inc()
        logger.warning(
            "No valid JSON found in response",
            content_length=len(raw_text),
            parse_error=last_parse_error,
        )
        raise ExtractionError(
            "No valid JSON found in response",
            raw_text=raw_text,
            parse_error=last_parse_error,
        )

    @staticmethod
    def _fenced_blocks(text: str) -> Iterator[str]:
        for match in FENCED_BLOCK_PATTERN.finditer(text):
            interior = match.group(1).strip()
            if interior:
                yield interior

    @staticmethod
    def _object_candidates(text: str) -> Iterator[str]:
        """
        Yield the first balanced top-level object, then the greedy span.

        The balanced scan tracks string literals so braces inside strings
        do not count.
        """
        start = text.find("{")
        if start == -1:
            return

        balanced = find_balanced_object(text, start)
        if balanced is not None:
            yield balanced

        end = text.rfind("}")
        if end > start:
            greedy = text[start:end + 1]
            if greedy != balanced:
                yield greedy

    @staticmethod
    def _try_parse(candidate: str) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            return None, f"{e.msg} at line {e.lineno} col {e.colno}"

        if not isinstance(parsed, dict):
            return None, f"{NON_OBJECT_PREFIX}, got {type(parsed).__name__}"
        return parsed, None


def _is_non_object(parse_error: Optional[str]) -> bool:
    return bool(parse_error) and parse_error.startswith(NON_OBJECT_PREFIX)


def find_balanced_object(text: str, start: int) -> Optional[str]:
    """Return text[start:end] for the object opened at ``start``, or None if unbalanced."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


_default_extractor = ResponseExtractor()


def extract_json(raw_text: str) -> dict[str, Any]:
    """Module-level shortcut for ResponseExtractor().extract()."""
    return _default_extractor.extract(raw_text)

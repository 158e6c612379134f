"""
Structured output extraction.

Model output is free-form text; the extractor locates the JSON payload
(fenced block first, embedded object second) and parses it.
"""

from invocation_layer.validation.exceptions import ExtractionError
from invocation_layer.validation.extractor import ResponseExtractor, extract_json

__all__ = [
    "ExtractionError",
    "ResponseExtractor",
    "extract_json",
]

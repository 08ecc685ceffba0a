"""
Response reconciliation (model output text -> typed results).

- pipeline.py: Orchestrator (extract, interpret, merge metadata, validate)
- extraction.py: Choice selection and ordering
- json_output.py: Embedded JSON object parsing and null stripping
- delimited_output.py: Answer:/Message-ID: block parsing
"""

from .delimited_output import DelimitedAnswerParser
from .exceptions import OutputParseFailed, ValidationError
from .extraction import extract_output_text
from .json_output import EmbeddedJSONParser, strip_empty_values
from .pipeline import ResponseReconciler, merge_metadata

__all__ = [
    # Main pipeline
    "ResponseReconciler",
    "merge_metadata",
    # Steps
    "extract_output_text",
    "EmbeddedJSONParser",
    "DelimitedAnswerParser",
    "strip_empty_values",
    # Exceptions
    "ValidationError",
    "OutputParseFailed",
]

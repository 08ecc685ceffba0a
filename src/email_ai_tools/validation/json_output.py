"""
Embedded JSON output parsing.

Models often wrap the requested JSON object in commentary ("Sure, here you
go: {...} Let me know..."). The object is taken from the first ``{`` to the
last ``}`` of the output. This is a heuristic: braces inside the
surrounding prose are not told apart from the object itself.
"""

import json
from typing import Any

import structlog

from email_ai_tools.monitoring.metrics import output_parse_failures_total
from .exceptions import OutputParseFailed

logger = structlog.get_logger(__name__)

JSONValue = Any


def _is_kept_leaf(value: JSONValue) -> bool:
    if isinstance(value, (dict, list)):
        return True
    if isinstance(value, str):
        return value != ""
    return isinstance(value, (bool, int, float))


def strip_empty_values(value: JSONValue) -> JSONValue:
    """
    Return a copy of ``value`` without null-ish leaves.

    Removes, from objects and arrays at any depth, every leaf that is not a
    boolean, string or number, and every empty string. Models use ``null``
    or ``""`` as placeholders for fields they chose to omit; downstream
    code only ever sees the field missing. Containers are kept even when
    they end up empty. The input is not modified.

    Examples:
        >>> strip_empty_values({"a": None, "b": "", "c": [1, None], "d": {"e": None}})
        {'c': [1], 'd': {}}
    """
    if isinstance(value, dict):
        return {
            key: strip_empty_values(item)
            for key, item in value.items()
            if _is_kept_leaf(item)
        }
    if isinstance(value, list):
        return [strip_empty_values(item) for item in value if _is_kept_leaf(item)]
    return value


class EmbeddedJSONParser:
    """
    Parse the JSON object embedded in model output text.

    Raises OutputParseFailed when no object span exists or it is not valid
    JSON.
    """

    def parse(self, text: str) -> dict[str, Any]:
        """
        Extract, parse and clean the JSON object in ``text``.

        Args:
            text: Model output, possibly with leading/trailing commentary

        Returns:
            Parsed object with null-ish leaves removed

        Raises:
            OutputParseFailed: If no ``{``..``}`` span exists or it fails to parse
        """
        text = text or ""
        obj_start = text.find("{")
        obj_end = text.rfind("}")

        if obj_start < 0 or obj_end < 0 or obj_end <= obj_start:
            output_parse_failures_total.labels(mode="json").inc()
            raise OutputParseFailed(
                "Failed to parse output from API: no JSON object found",
                raw_text=text,
                parse_error="Invalid JSON object",
                obj_start=obj_start,
                obj_end=obj_end,
            )

        candidate = text[obj_start:obj_end + 1]
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            output_parse_failures_total.labels(mode="json").inc()
            raise OutputParseFailed(
                f"Failed to parse output from API: {e.msg}",
                raw_text=text,
                parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
            ) from e

        logger.debug("Parsed embedded JSON object", keys=len(parsed))
        return strip_empty_values(parsed)

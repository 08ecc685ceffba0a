"""
Enumerations for Email AI data models.
"""

from enum import Enum
from typing import Any


class Sentiment(str, Enum):
    """Overall sentiment of an email, as requested from the model."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class EventType(str, Enum):
    """Kinds of events the summary prompt asks the model to extract."""

    EVENT = "event"
    MEETING = "meeting"
    APPOINTMENT = "appointment"
    TASK = "task"
    GENERAL = "general"


class QueryOrdering(str, Enum):
    """Result ordering preference deduced from a user question."""

    OLDER_FIRST = "older_first"
    NEWER_FIRST = "newer_first"
    BEST_MATCH = "best_match"


class ModelFamily(str, Enum):
    """
    Request shape used for a model.

    CHAT models take a list of role messages, INSTRUCT models take a single
    prompt string and an explicit output token cap.
    """

    CHAT = "chat"
    INSTRUCT = "instruct"


class ParseMode(str, Enum):
    """How model output text is turned into a result."""

    JSON = "json"
    DELIMITED = "delimited"


def lenient_enum(enum_type: type[Enum], value: Any) -> Any:
    """
    Map a model-reported label to ``enum_type`` when it names a member.

    Case and surrounding whitespace are ignored. Unknown labels are returned
    unchanged; models add their own categories now and then.
    """
    if isinstance(value, str):
        try:
            return enum_type(value.strip().lower())
        except ValueError:
            return value
    return value

"""
Delimited answer parsing.

The context-question prompt asks for plain text output of the form::

    Answer: <answer text>
    Message-ID: <id1>, <id2>

Field prefixes are matched case-insensitively at the start of a line.
Text before the first prefix is ignored.
"""

import re
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

FIELD_PATTERN = re.compile(r"(?:^|\n)(Answer:|Message-ID:)", re.IGNORECASE)

ANSWER_KEY = "answer"
MESSAGE_ID_KEY = "message-id"


class DelimitedAnswerParser:
    """Parse ``Answer:`` / ``Message-ID:`` blocks into a result dict."""

    def parse(self, text: str) -> dict[str, Any]:
        """
        Args:
            text: Model output

        Returns:
            ``{"answer": str, "messageId": [unique ids in first-seen order]}``
        """
        values: dict[str, list[str]] = {ANSWER_KEY: [], MESSAGE_ID_KEY: []}
        current_key = None

        normalized = (text or "").strip().replace("\r\n", "\n")
        for part in FIELD_PATTERN.split(normalized):
            part = part.strip()
            if not part:
                continue

            if FIELD_PATTERN.fullmatch(part):
                current_key = part[:-1].lower()
                continue

            if current_key == MESSAGE_ID_KEY:
                values[MESSAGE_ID_KEY].extend(
                    message_id.strip() for message_id in re.split(r"[,\n]", part) if message_id.strip()
                )
            elif current_key == ANSWER_KEY:
                values[ANSWER_KEY].append(part)

        message_ids = list(dict.fromkeys(values[MESSAGE_ID_KEY]))
        logger.debug("Parsed delimited answer", message_ids=len(message_ids))

        return {
            "answer": "\n".join(values[ANSWER_KEY]),
            "messageId": message_ids,
        }

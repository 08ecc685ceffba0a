"""Shared test fixtures and configuration for all tests.

Provides a deterministic tokenizer, sample messages and helpers for
building fake API responses.
"""

import pytest
from typing import Any, Dict, Optional

from email_ai_tools.config import Settings


class CharTokenizer:
    """One token per character, so budgets in tests are easy to reason about."""

    def encode(self, text: str) -> list[int]:
        return [ord(char) for char in text]

    def decode(self, tokens: list[int]) -> str:
        return "".join(chr(token) for token in tokens)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the library defaults, independent of the environment."""
    return Settings(
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        OPENAI_API_BASE_URL="https://api.test",
    )


@pytest.fixture
def char_tokenizer() -> CharTokenizer:
    return CharTokenizer()


@pytest.fixture
def sample_message_data() -> Dict[str, Any]:
    """Parsed message as handed over by a MIME parser.

    Header order matters: the first authentication-results header is the
    one added by the receiving server.
    """
    return {
        "headers": [
            {"key": "Authentication-Results", "value": "mx.example.com; spf=pass; dkim=pass; dmarc=pass"},
            {"key": "authentication-results", "value": "relay.example.net; spf=fail"},
            {"key": "arc-seal", "value": "i=2; a=rsa-sha256; cv=pass"},
            {"key": "arc-seal", "value": "i=1; a=rsa-sha256; cv=none"},
            {"key": "received", "value": "from relay.example.net by mx.example.com"},
            {"key": "from", "value": "James <james@example.com>"},
            {"key": "to", "value": "Andris <andris@example.com>"},
            {"key": "cc", "value": "Team: Ann <ann@example.com>, bob@example.com;"},
            {"key": "subject", "value": "Quarterly review"},
            {"key": "date", "value": "Sun, 1 Oct 2023 06:30:26 +0200"},
            {"key": "message-id", "value": "<review-1@example.com>"},
        ],
        "attachments": [
            {"filename": "slides.pdf", "contentType": "application/pdf"},
            {"filename": None, "contentType": None},
        ],
        "text": "Hi Andris,\n\nThe review is on Friday at 10:00 in room 4.\nPlease bring the numbers.\n\nJames",
        "html": None,
    }


def _completion_body(
    content: str,
    response_id: str = "chatcmpl-1",
    total_tokens: Optional[int] = 123,
    model: str = "gpt-3.5-turbo",
) -> Dict[str, Any]:
    """Chat completion response body with a single assistant choice."""
    body: Dict[str, Any] = {
        "id": response_id,
        "object": "chat.completion",
        "model": model,
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }
    if total_tokens is not None:
        body["usage"] = {"prompt_tokens": 100, "completion_tokens": 23, "total_tokens": total_tokens}
    return body


def _instruct_body(text: str, response_id: str = "cmpl-1", total_tokens: int = 77) -> Dict[str, Any]:
    """Legacy completions response body with a single text choice."""
    return {
        "id": response_id,
        "object": "text_completion",
        "choices": [{"index": 0, "text": text, "finish_reason": "stop"}],
        "usage": {"total_tokens": total_tokens},
    }


@pytest.fixture
def completion_body():
    """Factory for chat completion response bodies."""
    return _completion_body


@pytest.fixture
def instruct_body():
    """Factory for legacy completions response bodies."""
    return _instruct_body

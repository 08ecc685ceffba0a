"""
Token counting.

Budgets are expressed in tokens of the model's byte-pair encoding. The
encoding table is loaded once per process and only read afterwards, so it
is safe to share between concurrent calls.
"""

from functools import lru_cache
from typing import Optional, Protocol

import structlog
import tiktoken

from email_ai_tools.config import get_settings

logger = structlog.get_logger(__name__)


class Tokenizer(Protocol):
    """Anything that can encode text to token ids and back."""

    def encode(self, text: str) -> list[int]:
        ...

    def decode(self, tokens: list[int]) -> str:
        ...


class TiktokenTokenizer:
    """Thin wrapper so special-token text in emails is encoded as plain text."""

    def __init__(self, encoding: tiktoken.Encoding):
        self.encoding = encoding

    def encode(self, text: str) -> list[int]:
        return self.encoding.encode(text, disallowed_special=())

    def decode(self, tokens: list[int]) -> str:
        return self.encoding.decode(tokens)

    def __repr__(self) -> str:
        return f"TiktokenTokenizer(encoding={self.encoding.name})"


@lru_cache(maxsize=None)
def get_tokenizer(encoding_name: Optional[str] = None) -> Tokenizer:
    """Return the shared tokenizer for ``encoding_name`` (default from settings)."""
    name = encoding_name or get_settings().TOKEN_ENCODING
    logger.debug("Loading token encoding", encoding=name)
    return TiktokenTokenizer(tiktoken.get_encoding(name))


def count_tokens(text: str, tokenizer: Optional[Tokenizer] = None) -> int:
    """Number of tokens in ``text``."""
    return len((tokenizer or get_tokenizer()).encode(text))

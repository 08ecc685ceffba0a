"""
Token budget fitting.

Shrinks the variable part of a prompt (the email text or the context
chunks) from the end until the whole rendered prompt fits a token budget.
Removal steps shrink with the remaining length: huge inputs lose a mebibyte
per iteration, short ones a single character, so large inputs converge in
a few encoder calls while small ones land right at the boundary.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from email_ai_tools.llm.exceptions import PromptTooLongError
from email_ai_tools.llm.tokenizer import Tokenizer, get_tokenizer

logger = structlog.get_logger(__name__)

# (length above which the step applies, characters removed per iteration)
REMOVAL_STEPS: tuple[tuple[int, int], ...] = (
    (2 * 1024 * 1024, 1024 * 1024),
    (2 * 1024, 1024),
    (2 * 256, 256),
    (2 * 100, 100),
    (2 * 10, 10),
    (0, 1),
)


@dataclass(frozen=True)
class BudgetedText:
    """Outcome of fitting text into a prompt budget."""

    text: str
    prompt: str
    prompt_tokens: int
    characters_removed: int
    original_length: int
    iterations: int

    @property
    def truncated(self) -> bool:
        return self.characters_removed > 0


def removal_step(length: int) -> int:
    """Characters to remove from text of ``length`` in one iteration."""
    for threshold, step in REMOVAL_STEPS:
        if length > threshold:
            return step
    return 0


def fit_text_to_budget(
    render: Callable[[str], str],
    text: str,
    max_tokens: int,
    tokenizer: Optional[Tokenizer] = None,
    max_text_length: Optional[int] = None,
) -> BudgetedText:
    """
    Trim ``text`` until ``render(text)`` encodes to at most ``max_tokens``.

    Args:
        render: Builds the complete prompt (instructions, schema and payload)
            around the candidate text
        text: Variable part of the prompt
        max_tokens: Token budget for the whole rendered prompt
        tokenizer: Token encoder (default: shared tiktoken encoding)
        max_text_length: Hard character cap applied before any token counting

    Returns:
        BudgetedText with the longest prefix of ``text`` that fits

    Raises:
        PromptTooLongError: If the prompt is over budget even with empty text
    """
    tokenizer = tokenizer or get_tokenizer()
    original_length = len(text)
    characters_removed = 0

    if max_text_length is not None and len(text) > max_text_length:
        characters_removed += len(text) - max_text_length
        text = text[:max_text_length]

    iterations = 0
    while True:
        iterations += 1
        prompt = render(text)
        prompt_tokens = len(tokenizer.encode(prompt))
        if prompt_tokens <= max_tokens:
            break

        step = removal_step(len(text))
        if not step:
            logger.warning(
                "Prompt does not fit the token budget",
                max_tokens=max_tokens,
                prompt_tokens=prompt_tokens,
                characters_removed=characters_removed,
                original_length=original_length,
            )
            raise PromptTooLongError(
                characters_removed=characters_removed,
                original_length=original_length,
                max_tokens=max_tokens,
            )
        text = text[:-step]
        characters_removed += step

    if characters_removed:
        logger.debug(
            "Trimmed text to fit token budget",
            max_tokens=max_tokens,
            prompt_tokens=prompt_tokens,
            characters_removed=characters_removed,
            original_length=original_length,
            iterations=iterations,
        )

    return BudgetedText(
        text=text,
        prompt=prompt,
        prompt_tokens=prompt_tokens,
        characters_removed=characters_removed,
        original_length=original_length,
        iterations=iterations,
    )

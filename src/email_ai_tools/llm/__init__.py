"""
LLM request layer.

Components:
- OpenAIClient: HTTP client with bounded retry on rate limiting
- PromptBuilder: Renders prompt templates and composes chat/instruct requests
- budget: Fits variable prompt text into a token budget
- tokenizer: Shared token encoding
- text_utils: Body selection, link reduction, header decoding
- exceptions: LLM-specific exceptions
"""

from email_ai_tools.llm.budget import BudgetedText, fit_text_to_budget
from email_ai_tools.llm.exceptions import (
    ApiError,
    ConfigurationError,
    EmptyInputError,
    LLMClientError,
    LLMConnectionError,
    LLMTimeoutError,
    LLMTransportError,
    PromptTooLongError,
    RateLimitExceededError,
)
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.llm.prompt_builder import PromptBuilder, classify_model, get_prompt_builder
from email_ai_tools.llm.tokenizer import Tokenizer, count_tokens, get_tokenizer

__all__ = [
    "OpenAIClient",
    "PromptBuilder",
    "get_prompt_builder",
    "classify_model",
    "BudgetedText",
    "fit_text_to_budget",
    "Tokenizer",
    "get_tokenizer",
    "count_tokens",
    "LLMClientError",
    "ConfigurationError",
    "PromptTooLongError",
    "EmptyInputError",
    "ApiError",
    "RateLimitExceededError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMTransportError",
]

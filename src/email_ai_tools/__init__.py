"""
Email AI tools.

Turns parsed email messages into structured output using an OpenAI-compatible
completion API:
- Summaries (sentiment, reply expectation, events, actions, risk assessment)
- Risk scoring
- Embeddings for message chunks
- Question answering over embedded context and query interpretation

Architecture: token budgeting + prompt composition + retrying HTTP client +
response reconciliation, shared by thin feature modules.
"""

__version__ = "0.1.0"

from email_ai_tools.features.embeddings import generate_embeddings, get_chunk_embeddings
from email_ai_tools.features.models_list import list_models
from email_ai_tools.features.query import embeddings_query, question_query
from email_ai_tools.features.risk import risk_analysis
from email_ai_tools.features.summary import generate_summary
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
from email_ai_tools.logging_config import configure_logging
from email_ai_tools.models.input_models import Message, RequestOptions
from email_ai_tools.validation.exceptions import OutputParseFailed

__all__ = [
    "__version__",
    # Entry points
    "generate_summary",
    "risk_analysis",
    "generate_embeddings",
    "get_chunk_embeddings",
    "embeddings_query",
    "question_query",
    "list_models",
    "configure_logging",
    # Inputs
    "Message",
    "RequestOptions",
    # Errors
    "LLMClientError",
    "ConfigurationError",
    "PromptTooLongError",
    "EmptyInputError",
    "ApiError",
    "RateLimitExceededError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMTransportError",
    "OutputParseFailed",
]

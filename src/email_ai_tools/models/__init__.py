"""
Pydantic data models for Email AI tools.

Includes:
- Input models (Message, ContentPayload, RequestOptions)
- API models (ChatRequest, InstructRequest, EmbeddingRequest, envelopes)
- Output models (SummaryResult, RiskResult, QueryAnswer, ...)
- Enums (Sentiment, EventType, QueryOrdering, ModelFamily, ParseMode)
"""

from email_ai_tools.models.enums import EventType, ModelFamily, ParseMode, QueryOrdering, Sentiment
from email_ai_tools.models.input_models import (
    Attachment,
    ContentPayload,
    Message,
    MessageHeader,
    RequestOptions,
)
from email_ai_tools.models.llm_models import (
    ApiResponse,
    ChatMessage,
    ChatRequest,
    CompletionChoice,
    CompletionEnvelope,
    CompletionRequest,
    EmbeddingEnvelope,
    EmbeddingRequest,
    InstructRequest,
    Usage,
)
from email_ai_tools.models.output_models import (
    CallMetadata,
    EmbeddingChunk,
    EmbeddingsResult,
    ModelInfo,
    ModelList,
    QueryAnswer,
    QuestionInterpretation,
    RiskAssessment,
    RiskResult,
    SummaryAction,
    SummaryEvent,
    SummaryResult,
)

__all__ = [
    # Enums
    "Sentiment",
    "EventType",
    "QueryOrdering",
    "ModelFamily",
    "ParseMode",
    # Input models
    "MessageHeader",
    "Attachment",
    "Message",
    "ContentPayload",
    "RequestOptions",
    # API models
    "ChatMessage",
    "ChatRequest",
    "InstructRequest",
    "CompletionRequest",
    "EmbeddingRequest",
    "CompletionChoice",
    "CompletionEnvelope",
    "EmbeddingEnvelope",
    "Usage",
    "ApiResponse",
    # Output models
    "CallMetadata",
    "SummaryResult",
    "SummaryEvent",
    "SummaryAction",
    "RiskAssessment",
    "RiskResult",
    "QueryAnswer",
    "QuestionInterpretation",
    "EmbeddingChunk",
    "EmbeddingsResult",
    "ModelInfo",
    "ModelList",
]

"""
Output data models for Email AI tools.

Result fields mirror the JSON properties the prompts ask the model to
produce (camelCase aliases), so ``model_dump(by_alias=True,
exclude_none=True)`` yields the same structure the API returned, minus the
null placeholders stripped during reconciliation. Unknown properties the
model adds are kept.
"""

import math
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from email_ai_tools.models.enums import EventType, QueryOrdering, Sentiment, lenient_enum

RISK_SENTINEL = -1


def coerce_risk_score(value: Any) -> Union[int, float]:
    """
    Convert a model-reported risk score to a number.

    Returns ``RISK_SENTINEL`` when the value is not numeric or is zero,
    never raises.
    """
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value) if value not in (None, "") else math.nan
    except (TypeError, ValueError):
        return RISK_SENTINEL
    if math.isnan(number) or math.isinf(number) or number == 0:
        return RISK_SENTINEL
    return int(number) if number.is_integer() else number


class _ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class CallMetadata(_ResultModel):
    """Fields merged into every result from the API envelope."""

    id: Optional[str] = Field(default=None, description="API response id")
    tokens: Optional[int] = Field(default=None, description="Total tokens reported by the API")
    model: Optional[str] = Field(default=None, description="Model used for the call")
    elapsed_time: Optional[int] = Field(
        default=None, alias="elapsedTime", description="Verbose mode: request time in milliseconds"
    )
    characters_removed: Optional[int] = Field(
        default=None, alias="charactersRemoved", description="Verbose mode: characters trimmed from the input"
    )


class RiskAssessment(_ResultModel):
    risk: Optional[Union[int, float]] = Field(default=None, description="1 (low) to 5 (high)")
    assessment: Optional[str] = None

    @field_validator("risk", mode="before")
    @classmethod
    def coerce_risk(cls, v: Any) -> Optional[Union[int, float]]:
        return None if v is None else coerce_risk_score(v)


class SummaryEvent(_ResultModel):
    description: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    type: Optional[Union[EventType, str]] = None

    @field_validator("type", mode="before")
    @classmethod
    def known_type(cls, v: Any) -> Any:
        return lenient_enum(EventType, v)


class SummaryAction(_ResultModel):
    description: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")


class SummaryResult(CallMetadata):
    """Result of ``generate_summary``."""

    sentiment: Optional[Union[Sentiment, str]] = None
    summary: Optional[str] = None
    should_reply: Optional[bool] = Field(default=None, alias="shouldReply")
    reply_text: Optional[str] = Field(default=None, alias="replyText")
    risk_assessment: Optional[RiskAssessment] = Field(default=None, alias="riskAssessment")
    events: list[SummaryEvent] = Field(default_factory=list)
    actions: list[SummaryAction] = Field(default_factory=list)

    @field_validator("sentiment", mode="before")
    @classmethod
    def known_sentiment(cls, v: Any) -> Any:
        return lenient_enum(Sentiment, v)

    @field_validator("events", "actions", mode="before")
    @classmethod
    def drop_non_objects(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [item for item in v if isinstance(item, dict)]
        return v


class RiskResult(CallMetadata):
    """Result of ``risk_analysis``."""

    risk: Union[int, float] = Field(default=RISK_SENTINEL, description="1 (low) to 5 (high), -1 if unknown")
    assessment: Optional[str] = None

    @field_validator("risk", mode="before")
    @classmethod
    def coerce_risk(cls, v: Any) -> Union[int, float]:
        return coerce_risk_score(v)


class QueryAnswer(CallMetadata):
    """Result of ``embeddings_query``."""

    answer: str = ""
    message_id: list[str] = Field(default_factory=list, alias="messageId")


class QuestionInterpretation(CallMetadata):
    """Result of ``question_query``: how to search for the answer."""

    ordering: Optional[Union[QueryOrdering, str]] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @field_validator("ordering", mode="before")
    @classmethod
    def known_ordering(cls, v: Any) -> Any:
        return lenient_enum(QueryOrdering, v)


class EmbeddingChunk(BaseModel):
    chunk: str
    embedding: Optional[list[float]] = None
    elapsed_time: int = Field(default=0, alias="elapsedTime", description="Milliseconds")

    model_config = ConfigDict(populate_by_name=True)


class EmbeddingsResult(BaseModel):
    """Result of ``generate_embeddings``; chunks keep message order."""

    model: str
    embeddings: list[EmbeddingChunk] = Field(default_factory=list)


class ModelInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    owned_by: Optional[str] = None


class ModelList(BaseModel):
    """Result of ``list_models``."""

    models: list[ModelInfo] = Field(default_factory=list)
    elapsed_time: Optional[int] = Field(default=None, alias="elapsedTime")

    model_config = ConfigDict(populate_by_name=True)

"""
API request/response models.

Requests are a closed set of variants (chat, instruct, embeddings); each
knows its endpoint and renders its own JSON body, so the HTTP client never
branches on the model family. Envelope models parse the remote response
tolerantly: unknown fields are ignored and missing ones default.
"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from email_ai_tools.models.enums import ModelFamily


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class _SamplingRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str = Field(..., description="Model identifier (e.g. 'gpt-3.5-turbo')")
    temperature: Optional[float] = Field(default=None, description="Sampling temperature")
    top_p: Optional[float] = Field(default=None, description="Nucleus sampling parameter")
    user: Optional[str] = Field(default=None, description="End-user tag forwarded to the API")

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the API call; unset optional fields are omitted."""
        return self.model_dump(exclude_none=True, exclude={"family", "path"})


class ChatRequest(_SamplingRequest):
    """Request for chat-family models: a system and a user message."""

    family: Literal[ModelFamily.CHAT] = ModelFamily.CHAT
    path: Literal["/v1/chat/completions"] = "/v1/chat/completions"
    messages: list[ChatMessage]


class InstructRequest(_SamplingRequest):
    """Request for instruct-family models: one prompt string and an output cap."""

    family: Literal[ModelFamily.INSTRUCT] = ModelFamily.INSTRUCT
    path: Literal["/v1/completions"] = "/v1/completions"
    prompt: str
    max_tokens: int = Field(..., ge=1, description="Completion tokens left under the model ceiling")


CompletionRequest = Union[ChatRequest, InstructRequest]


class EmbeddingRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Literal["/v1/embeddings"] = "/v1/embeddings"
    model: str
    input: str
    user: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"path"})


class ChoiceMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Optional[str] = None
    content: Optional[str] = None


class CompletionChoice(BaseModel):
    """
    One completion choice. Chat endpoints fill ``message``, the legacy
    completions endpoint fills ``text``.
    """

    model_config = ConfigDict(extra="ignore")

    index: Optional[int] = None
    message: Optional[ChoiceMessage] = None
    text: Optional[str] = None


class Usage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class CompletionEnvelope(BaseModel):
    """Top-level object returned by the completion endpoints."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[CompletionChoice] = Field(default_factory=list)
    usage: Optional[Usage] = None

    @property
    def total_tokens(self) -> Optional[int]:
        return self.usage.total_tokens if self.usage else None


class EmbeddingData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: Optional[int] = None
    embedding: list[float] = Field(default_factory=list)


class EmbeddingEnvelope(BaseModel):
    """Top-level object returned by the embeddings endpoint."""

    model_config = ConfigDict(extra="ignore")

    data: list[EmbeddingData] = Field(default_factory=list)
    usage: Optional[Usage] = None

    @property
    def first_embedding(self) -> Optional[list[float]]:
        return self.data[0].embedding if self.data else None


class ApiResponse(BaseModel):
    """Decoded response body plus call diagnostics from the HTTP client."""

    data: dict[str, Any]
    status_code: int
    elapsed_ms: int = Field(..., ge=0, description="First to last attempt, in milliseconds")
    attempts: int = Field(default=1, ge=1)
    request_id: str

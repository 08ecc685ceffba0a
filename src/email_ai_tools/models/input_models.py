"""
Input data models for Email AI tools.

These models describe the parsed email handed over by the caller's MIME
parser, the filtered projection of it that is embedded in prompts, and the
per-call request options.
"""

import json
import math
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class MessageHeader(BaseModel):
    """A single header line. Keys are normalized to lower case."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Header name, lower case (e.g. 'authentication-results')")
    value: str = Field(default="", description="Header value without the key prefix")

    @field_validator("key", mode="before")
    @classmethod
    def normalize_key(cls, v: Any) -> str:
        return str(v or "").strip().lower()

    @field_validator("value", mode="before")
    @classmethod
    def stringify_value(cls, v: Any) -> str:
        return "" if v is None else str(v)


class Attachment(BaseModel):
    """Attachment metadata. Attachment contents are never sent to the API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    filename: Optional[str] = None
    content_type: Optional[str] = Field(default=None, alias="contentType")


class Message(BaseModel):
    """
    Parsed email message as produced by the caller's email parser.

    Header order is the original order of the header lines; several
    features depend on it (e.g. keeping only the topmost
    authentication-results header).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    headers: list[MessageHeader] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    subject: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None

    @field_validator("headers", "attachments", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @classmethod
    def coerce(cls, message: "Message | dict[str, Any]") -> "Message":
        """Accept either a Message or a plain dict with the same shape."""
        if isinstance(message, cls):
            return message
        return cls.model_validate(message or {})


class ContentPayload(BaseModel):
    """
    Whitelisted projection of a Message that is serialized into the prompt.

    Only ``text`` changes while the prompt is fitted to the token budget.
    """

    headers: list[MessageHeader] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    text: str = ""

    def to_prompt_json(self, text: Optional[str] = None) -> str:
        """Serialize the payload the way the prompt schema describes it."""
        return json.dumps(
            {
                "headers": [{"key": h.key, "value": h.value} for h in self.headers],
                "attachments": [
                    a.model_dump(by_alias=True, exclude_none=True) for a in self.attachments
                ],
                "text": self.text if text is None else text,
            },
            ensure_ascii=False,
            separators=(",", ":"),
        )


def _numeric_or_none(v: Any) -> Optional[float]:
    """Non-numeric sampling parameters are ignored instead of rejected."""
    if v is None or isinstance(v, bool):
        return None
    try:
        number = float(v)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


class RequestOptions(BaseModel):
    """
    Options shared by all entry points.

    Unset values fall back to ``Settings``. Both snake_case names and the
    camelCase names of the original option set are accepted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    gpt_model: Optional[str] = Field(default=None, validation_alias=AliasChoices("gpt_model", "gptModel"))
    max_tokens: Optional[int] = Field(default=None, ge=1, validation_alias=AliasChoices("max_tokens", "maxTokens"))
    temperature: Optional[float] = None
    top_p: Optional[float] = Field(default=None, validation_alias=AliasChoices("top_p", "topP"))
    user: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, validation_alias=AliasChoices("system_prompt", "systemPrompt"))
    user_prompt: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_prompt", "userPrompt"))
    allowed_headers: Optional[list[str]] = Field(
        default=None, validation_alias=AliasChoices("allowed_headers", "allowedHeaders")
    )
    base_api_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("base_api_url", "baseApiUrl"))
    verbose: bool = False
    chunk_size: Optional[int] = Field(default=None, ge=1, validation_alias=AliasChoices("chunk_size", "chunkSize"))
    question: Optional[str] = None
    context_chunks: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("context_chunks", "contextChunks")
    )

    @field_validator("temperature", "top_p", mode="before")
    @classmethod
    def ignore_non_numeric(cls, v: Any) -> Optional[float]:
        return _numeric_or_none(v)

    @field_validator("allowed_headers", mode="before")
    @classmethod
    def listify_headers(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @classmethod
    def coerce(cls, options: "RequestOptions | dict[str, Any] | None") -> "RequestOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls.model_validate(options)

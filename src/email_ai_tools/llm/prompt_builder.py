"""
Prompt builder for API requests.

Responsible for:
- Loading and rendering the packaged Jinja2 prompt templates
- Projecting a Message into the whitelisted content payload
- Classifying models into request families (chat / instruct)
- Constructing the final ChatRequest or InstructRequest
"""

from datetime import datetime, timezone
from email.utils import format_datetime
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

import structlog
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from email_ai_tools.config import get_settings
from email_ai_tools.llm.exceptions import PromptTooLongError
from email_ai_tools.llm.tokenizer import Tokenizer, count_tokens
from email_ai_tools.models.enums import ModelFamily
from email_ai_tools.models.input_models import (
    Attachment,
    ContentPayload,
    Message,
    RequestOptions,
)
from email_ai_tools.models.llm_models import (
    ChatMessage,
    ChatRequest,
    CompletionRequest,
    InstructRequest,
)

logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

DEFAULT_ALLOWED_HEADERS: tuple[str, ...] = (
    "from",
    "to",
    "cc",
    "bcc",
    "subject",
    "mime-version",
    "authentication-results",
    "date",
    "content-type",
    "list-id",
)

# Trace headers are prepended by every hop; only the topmost (latest) one is kept
AUTHENTICATION_TRACE_HEADERS: tuple[str, ...] = (
    "authentication-results",
    "arc-authentication-results",
    "arc-message-signature",
    "arc-seal",
)

# Legacy completion models that only accept a single prompt string
INSTRUCT_MODELS = frozenset({"davinci-002", "babbage-002"})


def classify_model(model: str) -> ModelFamily:
    """
    Decide which request shape a model takes.

    Instruct-family models (``*-instruct`` and the legacy completion models)
    use the completions endpoint; every other model, including unknown
    ones, is treated as a chat model.

    Examples:
        >>> classify_model("gpt-3.5-turbo-instruct")
        <ModelFamily.INSTRUCT: 'instruct'>
        >>> classify_model("gpt-4")
        <ModelFamily.CHAT: 'chat'>
    """
    normalized = (model or "").strip().lower()
    if normalized.endswith("-instruct") or normalized in INSTRUCT_MODELS:
        return ModelFamily.INSTRUCT
    return ModelFamily.CHAT


def resolve_allowed_headers(extra_headers: Optional[Iterable[str]] = None) -> list[str]:
    """
    Union of caller-supplied header names and the default whitelist.

    Names are lower-cased, stripped and de-duplicated; caller names come
    first, in the order given.
    """
    if not extra_headers:
        return list(DEFAULT_ALLOWED_HEADERS)
    combined = [*extra_headers, *DEFAULT_ALLOWED_HEADERS]
    normalized = (str(header or "").strip().lower() for header in combined)
    return list(dict.fromkeys(header for header in normalized if header))


def build_content_payload(
    message: Message,
    allowed_headers: Iterable[str],
    trace_headers: Iterable[str] = AUTHENTICATION_TRACE_HEADERS,
    text: str = "",
) -> ContentPayload:
    """
    Project a Message into the payload embedded in analysis prompts.

    Args:
        message: Parsed message
        allowed_headers: Header whitelist (lower case)
        trace_headers: Headers of which only the first occurrence is kept
        text: Initial body text (trimmed later by the budgeter)

    Returns:
        ContentPayload with headers in original order
    """
    allowed = set(allowed_headers)
    collapse = set(trace_headers)
    seen: set[str] = set()

    headers = []
    for header in message.headers:
        if header.key not in allowed:
            continue
        if header.key in collapse:
            if header.key in seen:
                continue
            seen.add(header.key)
        headers.append(header)

    attachments = [
        Attachment(filename=attachment.filename, content_type=attachment.content_type)
        for attachment in message.attachments
        if attachment.filename or attachment.content_type
    ]

    return ContentPayload(headers=headers, attachments=attachments, text=text)


class PromptBuilder:
    """
    Build prompts and API requests from the packaged templates.

    Templates are plain text files rendered with Jinja2; caller-supplied
    prompt overrides are inserted as values and never compiled.
    """

    def __init__(
        self,
        templates_dir: Path = TEMPLATES_DIR,
        instruct_token_ceiling: Optional[int] = None,
    ):
        """
        Initialize prompt builder.

        Args:
            templates_dir: Directory containing prompt templates
            instruct_token_ceiling: Context window (prompt + completion) of
                instruct models
        """
        self.templates_dir = Path(templates_dir)
        self.instruct_token_ceiling = (
            instruct_token_ceiling or get_settings().INSTRUCT_TOKEN_CEILING
        )

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            autoescape=False,  # We're generating prompts, not HTML
        )

        logger.debug("PromptBuilder initialized", templates_dir=str(self.templates_dir))

    def render(self, template_name: str, **variables) -> str:
        """Render a template by file name and strip surrounding whitespace."""
        template = self.jinja_env.get_template(template_name)
        return template.render(**variables).strip()

    def prompt_text(self, template_name: str, override: Optional[str] = None) -> str:
        """Caller override if given, otherwise the packaged template."""
        if override is not None and str(override).strip():
            return str(override).strip()
        return self.render(template_name)

    def render_email_prompt(
        self,
        instructions: str,
        payload_json: str,
        input_schema: Optional[str] = None,
    ) -> str:
        """Instructions, optional input schema description, then the email JSON."""
        return self.render(
            "email_prompt.txt",
            instructions=instructions,
            input_schema=input_schema or "",
            payload=payload_json,
        )

    def render_query_prompt(self, question_json: str, context: str) -> str:
        return self.render(
            "query_prompt.txt",
            instructions=self.render("query_instructions.txt"),
            question_json=question_json,
            context=context,
        )

    def render_question_prompt(self, question: str, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        instructions = self.render(
            "question_instructions.txt",
            current_time=format_datetime(now.astimezone(timezone.utc), usegmt=True),
        )
        return self.render("question_prompt.txt", instructions=instructions, question=question)

    def compose_request(
        self,
        system_prompt: str,
        prompt: str,
        model: str,
        options: Optional[RequestOptions] = None,
        tokenizer: Optional[Tokenizer] = None,
        temperature: Optional[float] = None,
    ) -> CompletionRequest:
        """
        Build the request body for ``model``.

        Chat models get a system message with the instructions and a user
        message with the prompt. Instruct models get both joined into one
        string, with ``max_tokens`` set to whatever the model ceiling leaves
        after the prompt.

        Args:
            system_prompt: System instructions
            prompt: Rendered user prompt (instructions, schema and payload)
            model: Model identifier
            options: Sampling parameters and user tag
            tokenizer: Token encoder for the instruct output cap
            temperature: Default temperature when options carry none

        Raises:
            PromptTooLongError: If an instruct prompt leaves no room for output
        """
        options = options or RequestOptions()
        sampling = {
            "model": model,
            "temperature": options.temperature if options.temperature is not None else temperature,
            "top_p": options.top_p,
            "user": options.user or None,
        }

        family = classify_model(model)
        if family is ModelFamily.INSTRUCT:
            full_prompt = f"{system_prompt}\n{prompt}"
            prompt_tokens = count_tokens(full_prompt, tokenizer)
            max_tokens = self.instruct_token_ceiling - prompt_tokens
            if max_tokens < 1:
                raise PromptTooLongError(
                    characters_removed=0,
                    original_length=len(full_prompt),
                    max_tokens=self.instruct_token_ceiling,
                    message=(
                        f"Prompt uses {prompt_tokens} tokens, no room left for output "
                        f"under the {self.instruct_token_ceiling} token ceiling."
                    ),
                )
            request: CompletionRequest = InstructRequest(
                prompt=full_prompt, max_tokens=max_tokens, **sampling
            )
        else:
            request = ChatRequest(
                messages=[
                    ChatMessage(role="system", content=system_prompt),
                    ChatMessage(role="user", content=prompt),
                ],
                **sampling,
            )

        logger.debug(
            "Composed request",
            model=model,
            family=family.value,
            path=request.path,
            prompt_length=len(prompt),
        )
        return request


@lru_cache(maxsize=1)
def get_prompt_builder() -> PromptBuilder:
    """Shared PromptBuilder (templates are read-only after loading)."""
    return PromptBuilder()

"""
Email summaries.

Produces sentiment, a one-sentence summary, reply expectation, extracted
events and actions, and a short risk assessment for one message.
"""

from typing import Any, Optional

import structlog

from email_ai_tools.config import get_settings
from email_ai_tools.features.base import api_client, record_budget, run_completion, token_budget
from email_ai_tools.llm.budget import fit_text_to_budget
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.llm.prompt_builder import (
    AUTHENTICATION_TRACE_HEADERS,
    build_content_payload,
    get_prompt_builder,
    resolve_allowed_headers,
)
from email_ai_tools.llm.text_utils import select_message_text
from email_ai_tools.llm.tokenizer import Tokenizer
from email_ai_tools.models.enums import ParseMode
from email_ai_tools.models.input_models import Message, RequestOptions
from email_ai_tools.models.output_models import SummaryResult

logger = structlog.get_logger(__name__)

FEATURE = "summary"


async def generate_summary(
    message: Message | dict[str, Any],
    api_token: str,
    options: RequestOptions | dict[str, Any] | None = None,
    tokenizer: Optional[Tokenizer] = None,
    client: Optional[OpenAIClient] = None,
) -> SummaryResult:
    """
    Summarize an email message.

    The HTML body replaces the plain text when it is at least as long. The
    text is trimmed from the end until the prompt fits ``max_tokens``.

    Args:
        message: Parsed message
        api_token: API bearer token
        options: Call options (model, sampling, prompt overrides, headers)
        tokenizer: Token encoder override
        client: Shared API client; a new one is used when omitted

    Raises:
        PromptTooLongError: The instructions alone exceed the budget
        ApiError: The API rejected the request
        OutputParseFailed: The output holds no usable JSON object
    """
    message = Message.coerce(message)
    options = RequestOptions.coerce(options)
    settings = get_settings()
    builder = get_prompt_builder()
    model = options.gpt_model or settings.DEFAULT_CHAT_MODEL

    system_prompt = builder.prompt_text("summary_system.txt", options.system_prompt)
    instructions = builder.prompt_text("summary_instructions.txt", options.user_prompt)
    input_schema = builder.render("summary_input_schema.txt")

    payload = build_content_payload(
        message,
        resolve_allowed_headers(options.allowed_headers),
        trace_headers=AUTHENTICATION_TRACE_HEADERS,
    )
    text = select_message_text(message.text, message.html)

    budgeted = fit_text_to_budget(
        lambda candidate: builder.render_email_prompt(
            instructions, payload.to_prompt_json(candidate), input_schema
        ),
        text,
        token_budget(options),
        tokenizer=tokenizer,
        max_text_length=settings.MAX_ALLOWED_TEXT_LENGTH,
    )
    record_budget(FEATURE, budgeted)

    request = builder.compose_request(
        system_prompt, budgeted.prompt, model, options, tokenizer=tokenizer
    )

    async with api_client(api_token, options, client) as api:
        result = await run_completion(
            FEATURE,
            api,
            request,
            SummaryResult,
            ParseMode.JSON,
            options,
            characters_removed=budgeted.characters_removed,
        )

    logger.info(
        "Summary generated",
        sentiment=result.sentiment,
        events=len(result.events),
        actions=len(result.actions),
        truncated=budgeted.truncated,
    )
    return result

"""
Email risk scoring.
"""

from typing import Any, Optional

import structlog

from email_ai_tools.config import get_settings
from email_ai_tools.features.base import api_client, record_budget, run_completion, token_budget
from email_ai_tools.llm.budget import fit_text_to_budget
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.llm.prompt_builder import (
    DEFAULT_ALLOWED_HEADERS,
    build_content_payload,
    get_prompt_builder,
)
from email_ai_tools.llm.text_utils import select_message_text
from email_ai_tools.llm.tokenizer import Tokenizer
from email_ai_tools.models.enums import ParseMode
from email_ai_tools.models.input_models import Message, RequestOptions
from email_ai_tools.models.output_models import RiskResult

logger = structlog.get_logger(__name__)

FEATURE = "risk"

# Only the receiving server's own verdict is relevant for scoring
RISK_TRACE_HEADERS = ("authentication-results",)

# HTML replaces plain text only when it is more than twice as long
HTML_LENGTH_FACTOR = 2.0


async def risk_analysis(
    message: Message | dict[str, Any],
    api_token: str,
    options: RequestOptions | dict[str, Any] | None = None,
    tokenizer: Optional[Tokenizer] = None,
    client: Optional[OpenAIClient] = None,
) -> RiskResult:
    """
    Score how risky acting on an email would be, from 1 (low) to 5 (high).

    The header whitelist is fixed. ``risk`` is -1 when the model does not
    return a usable number. Elapsed time and characters removed are always
    included in the result.
    """
    message = Message.coerce(message)
    options = RequestOptions.coerce(options)
    settings = get_settings()
    builder = get_prompt_builder()
    model = options.gpt_model or settings.DEFAULT_CHAT_MODEL

    system_prompt = builder.prompt_text("risk_system.txt", options.system_prompt)
    instructions = builder.prompt_text("risk_instructions.txt", options.user_prompt)

    payload = build_content_payload(
        message, DEFAULT_ALLOWED_HEADERS, trace_headers=RISK_TRACE_HEADERS
    )
    text = select_message_text(message.text, message.html, html_length_factor=HTML_LENGTH_FACTOR)

    budgeted = fit_text_to_budget(
        lambda candidate: builder.render_email_prompt(instructions, payload.to_prompt_json(candidate)),
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
            RiskResult,
            ParseMode.JSON,
            options,
            characters_removed=budgeted.characters_removed,
            diagnostics=True,
        )

    logger.info("Risk scored", risk=result.risk, characters_removed=budgeted.characters_removed)
    return result

"""
Question answering over stored emails.

- embeddings_query: answer a question from context chunks the caller
  retrieved (e.g. by embedding similarity)
- question_query: interpret a question into a search ordering and time range
"""

import json
from datetime import datetime
from typing import Any, Optional

import structlog

from email_ai_tools.config import get_settings
from email_ai_tools.features.base import api_client, record_budget, run_completion, token_budget
from email_ai_tools.llm.budget import fit_text_to_budget
from email_ai_tools.llm.exceptions import EmptyInputError
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.llm.prompt_builder import get_prompt_builder
from email_ai_tools.llm.tokenizer import Tokenizer
from email_ai_tools.models.enums import ParseMode
from email_ai_tools.models.input_models import RequestOptions
from email_ai_tools.models.output_models import QueryAnswer, QuestionInterpretation

logger = structlog.get_logger(__name__)


def _require_question(question: Optional[str]) -> str:
    question = (question or "").strip()
    if not question:
        raise EmptyInputError("Question not provided")
    return question


async def embeddings_query(
    api_token: str,
    options: RequestOptions | dict[str, Any],
    tokenizer: Optional[Tokenizer] = None,
    client: Optional[OpenAIClient] = None,
) -> QueryAnswer:
    """
    Answer ``options.question`` using ``options.context_chunks``.

    The context is trimmed from the end to fit the budget, so callers should
    put the most relevant emails first. The model answers in
    ``Answer:`` / ``Message-ID:`` form.

    Raises:
        EmptyInputError: No question given
        PromptTooLongError: The instructions and question alone exceed the budget
    """
    options = RequestOptions.coerce(options)
    question = _require_question(options.question)
    settings = get_settings()
    builder = get_prompt_builder()
    model = options.gpt_model or settings.DEFAULT_CHAT_MODEL

    system_prompt = builder.prompt_text("query_system.txt", options.system_prompt)
    question_json = json.dumps({"question": question}, ensure_ascii=False, separators=(",", ":"))
    context = (options.context_chunks or "").strip()

    budgeted = fit_text_to_budget(
        lambda candidate: builder.render_query_prompt(question_json, candidate),
        context,
        token_budget(options),
        tokenizer=tokenizer,
        max_text_length=settings.MAX_ALLOWED_TEXT_LENGTH,
    )
    record_budget("embeddings_query", budgeted)

    request = builder.compose_request(
        system_prompt, budgeted.prompt, model, options, tokenizer=tokenizer
    )

    async with api_client(api_token, options, client) as api:
        return await run_completion(
            "embeddings_query",
            api,
            request,
            QueryAnswer,
            ParseMode.DELIMITED,
            options,
            characters_removed=budgeted.characters_removed,
        )


async def question_query(
    question: str,
    api_token: str,
    options: RequestOptions | dict[str, Any] | None = None,
    tokenizer: Optional[Tokenizer] = None,
    client: Optional[OpenAIClient] = None,
    now: Optional[datetime] = None,
) -> QuestionInterpretation:
    """
    Work out how to search for the answer to ``question``.

    Returns the preferred ordering (older_first, newer_first, best_match)
    and, when the question implies one, a start and end time. Relative
    times ("last Friday") are resolved against ``now`` (default: current
    UTC time).

    Raises:
        EmptyInputError: The question is empty
    """
    question = _require_question(question)
    options = RequestOptions.coerce(options)
    settings = get_settings()
    builder = get_prompt_builder()
    model = options.gpt_model or settings.DEFAULT_QUESTION_MODEL

    system_prompt = builder.prompt_text("query_system.txt", options.system_prompt)
    prompt = builder.render_question_prompt(question, now=now)

    request = builder.compose_request(
        system_prompt,
        prompt,
        model,
        options,
        tokenizer=tokenizer,
        temperature=settings.QUESTION_TEMPERATURE,
    )

    async with api_client(api_token, options, client) as api:
        result = await run_completion(
            "question_query",
            api,
            request,
            QuestionInterpretation,
            ParseMode.JSON,
            options,
        )

    logger.debug(
        "Question interpreted",
        ordering=result.ordering,
        start_time=result.start_time,
        end_time=result.end_time,
    )
    return result

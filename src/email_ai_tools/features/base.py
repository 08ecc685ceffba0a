"""
Plumbing shared by the feature entry points.

Each feature builds its prompt and request, then hands over to
``run_completion`` which sends it, reconciles the output and attaches the
call diagnostics.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError as PydanticValidationError

from email_ai_tools.config import get_settings
from email_ai_tools.llm.budget import BudgetedText
from email_ai_tools.llm.exceptions import LLMTransportError
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.models.enums import ParseMode
from email_ai_tools.models.input_models import RequestOptions
from email_ai_tools.models.llm_models import CompletionEnvelope, CompletionRequest
from email_ai_tools.monitoring.metrics import llm_tokens_total, prompt_characters_removed_total
from email_ai_tools.validation.pipeline import ResponseReconciler

logger = structlog.get_logger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)
EnvelopeT = TypeVar("EnvelopeT", bound=BaseModel)

_reconciler = ResponseReconciler()


@asynccontextmanager
async def api_client(
    api_token: str,
    options: RequestOptions,
    client: Optional[OpenAIClient] = None,
) -> AsyncIterator[OpenAIClient]:
    """
    Yield ``client`` unchanged, or a new client that is closed on exit.

    Callers that run many operations can pass one client to reuse its
    connection pool.
    """
    if client is not None:
        yield client
        return
    async with OpenAIClient(api_token, base_url=options.base_api_url) as owned:
        yield owned


def token_budget(options: RequestOptions) -> int:
    return options.max_tokens or get_settings().MAX_ALLOWED_TOKENS


def record_budget(feature: str, budgeted: BudgetedText) -> None:
    if budgeted.characters_removed:
        prompt_characters_removed_total.labels(feature=feature).inc(budgeted.characters_removed)


def record_tokens(model: str, tokens: Optional[int]) -> None:
    if tokens:
        llm_tokens_total.labels(model=model).inc(tokens)


def parse_envelope(envelope_type: type[EnvelopeT], data: Any, path: str) -> EnvelopeT:
    """
    Validate a 2xx response body against the expected envelope.

    Raises:
        LLMTransportError: body does not have the expected shape
    """
    try:
        return envelope_type.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        logger.error("Unexpected API response shape", path=path, errors=errors)
        raise LLMTransportError(
            "Failed to parse API response",
            details={"path": path, "errors": errors},
        ) from e


async def run_completion(
    feature: str,
    client: OpenAIClient,
    request: CompletionRequest,
    result_type: type[ResultT],
    mode: ParseMode,
    options: RequestOptions,
    characters_removed: Optional[int] = None,
    diagnostics: bool = False,
) -> ResultT:
    """
    Send a completion request and reconcile the answer into ``result_type``.

    Args:
        feature: Feature name for logs and metrics
        client: API client
        request: Composed chat or instruct request
        result_type: Result model
        mode: How the output text is interpreted
        options: Call options (``verbose`` adds diagnostics and logs)
        characters_removed: Characters trimmed by the budgeter, if any ran
        diagnostics: Always attach elapsed time and characters removed

    Returns:
        Validated result with ``id``, ``tokens`` and ``model`` set
    """
    with structlog.contextvars.bound_contextvars(feature=feature, model=request.model):
        if options.verbose:
            logger.info("Composed request", path=request.path, payload=request.to_payload())

        response = await client.execute(request)
        envelope = parse_envelope(CompletionEnvelope, response.data, request.path)
        record_tokens(request.model, envelope.total_tokens)

        extra: dict[str, Any] = {}
        if options.verbose or diagnostics:
            extra["elapsed_time"] = response.elapsed_ms
            if characters_removed is not None:
                extra["characters_removed"] = characters_removed

        result = _reconciler.reconcile(
            envelope,
            mode,
            result_type,
            model=request.model,
            extra=extra,
            verbose=options.verbose,
        )

        logger.info(
            "Completion reconciled",
            response_id=envelope.id,
            tokens=envelope.total_tokens,
            elapsed_ms=response.elapsed_ms,
            attempts=response.attempts,
        )
        if options.verbose:
            logger.info("Result", result=result.model_dump(by_alias=True, exclude_none=True))
        return result

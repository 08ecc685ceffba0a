"""
Available model listing.
"""

import re
from functools import cmp_to_key
from typing import Any, Optional

import structlog

from email_ai_tools.features.base import api_client, parse_envelope
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.models.input_models import RequestOptions
from email_ai_tools.models.output_models import ModelInfo, ModelList

logger = structlog.get_logger(__name__)

MODELS_PATH = "/v1/models"

# Internal entries that are not usable by API customers
EXCLUDED_OWNERS = frozenset({"openai-dev"})

GPT_PATTERN = re.compile(r"^gpt")
DATE_SUFFIX_PATTERN = re.compile(r"-\d{4,}$")
PREVIEW_PATTERN = re.compile(r"-preview")


def _rank(model_id: str) -> tuple[bool, bool, bool]:
    return (
        not GPT_PATTERN.search(model_id),
        bool(DATE_SUFFIX_PATTERN.search(model_id)),
        bool(PREVIEW_PATTERN.search(model_id)),
    )


def compare_model_ids(a: str, b: str) -> int:
    """
    Order GPT models first, then undated before dated snapshots
    (``-0613``), then stable before ``-preview``, then alphabetically.
    """
    rank_a, rank_b = _rank(a), _rank(b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1

    key_a, key_b = (a.casefold(), a), (b.casefold(), b)
    if key_a == key_b:
        return 0
    return -1 if key_a < key_b else 1


def model_display_name(model_id: str) -> str:
    """
    Human readable name for a model id.

    Examples:
        >>> model_display_name("gpt-3.5-turbo-16k")
        'GPT-3.5 Turbo 16K'
        >>> model_display_name("dall-e-3")
        'Dall-E 3'
        >>> model_display_name("tts-1-hd")
        'TTS-1 HD'
    """
    name = model_id.replace("-", " ")
    name = re.sub(r"^.| .", lambda m: m.group(0).upper(), name)
    name = re.sub(r"\bhd\b", lambda m: m.group(0).upper(), name, flags=re.IGNORECASE)
    name = re.sub(r"\b\d+k\b", lambda m: m.group(0).upper(), name, flags=re.IGNORECASE)
    name = name.replace("Dall E", "Dall-E")
    name = re.sub(r"^Whisper ", "Whisper-", name)
    return re.sub(r"^(gpt|tts)\s", lambda m: f"{m.group(1).upper()}-", name, flags=re.IGNORECASE)


def prepare_models(entries: list[Any]) -> list[ModelInfo]:
    """Filter, sort and name raw ``/v1/models`` entries."""
    models = [
        parse_envelope(ModelInfo, entry, MODELS_PATH)
        for entry in entries
        if isinstance(entry, dict)
        and entry.get("id")
        and entry.get("owned_by") not in EXCLUDED_OWNERS
    ]
    models.sort(key=cmp_to_key(lambda a, b: compare_model_ids(a.id, b.id)))
    for model in models:
        model.name = model_display_name(model.id)
    return models


async def list_models(
    api_token: str,
    options: RequestOptions | dict[str, Any] | None = None,
    client: Optional[OpenAIClient] = None,
) -> ModelList:
    """
    List the models available to ``api_token``.

    In verbose mode the result includes the request time.
    """
    options = RequestOptions.coerce(options)

    with structlog.contextvars.bound_contextvars(feature="list_models"):
        async with api_client(api_token, options, client) as api:
            response = await api.get(MODELS_PATH)

        entries = response.data.get("data") or []
        models = prepare_models(entries if isinstance(entries, list) else [])

        result = ModelList(
            models=models,
            elapsed_time=response.elapsed_ms if options.verbose else None,
        )
        logger.info(
            "Models listed",
            received=len(entries) if isinstance(entries, list) else 0,
            models=len(models),
            elapsed_ms=response.elapsed_ms,
        )
        return result

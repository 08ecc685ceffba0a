"""
Structured logging setup for applications embedding email-ai-tools.

Library modules only call ``structlog.get_logger(__name__)`` and never touch
global logging state. An application calls ``configure_logging`` once at
startup: production gets one JSON object per line on stderr, anything else
gets the coloured console renderer.

Verbose mode logs composed requests, so API keys that end up in an event
are masked before rendering.
"""

import logging
import re
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from email_ai_tools.config import get_settings

SECRET_KEYS = frozenset({"api_token", "authorization", "api_key"})
_SECRET_PATTERN = re.compile(r"\bsk-[A-Za-z0-9_-]{8,}")

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def add_library_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event so library output can be filtered in mixed logs."""
    event_dict["lib"] = "email-ai-tools"
    return event_dict


def mask_secrets(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace API keys in top-level event values with a short marker."""
    for key, value in event_dict.items():
        if key.lower() in SECRET_KEYS and value:
            event_dict[key] = "***"
        elif isinstance(value, str) and "sk-" in value:
            event_dict[key] = _SECRET_PATTERN.sub("sk-***", value)
    return event_dict


def _renderer(json_output: bool) -> Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(
    log_level: Optional[str] = None, environment: Optional[str] = None
) -> None:
    """
    Route structlog and stdlib logging through one stderr handler.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown names
            fall back to INFO. Defaults to ``EMAIL_AI_LOG_LEVEL``.
        environment: ``production`` selects JSON output. Defaults to
            ``EMAIL_AI_ENVIRONMENT``.
    """
    settings = get_settings()
    log_level = log_level or settings.LOG_LEVEL
    environment = environment or settings.ENVIRONMENT
    level = getattr(logging, log_level.upper(), logging.INFO)
    json_output = environment.lower() == "production"

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_library_context,
        mask_secrets,
    ]
    if json_output:
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(json_output), foreign_pre_chain=pre_chain
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).debug(
        "Logging configured",
        log_level=logging.getLevelName(level),
        renderer="json" if json_output else "console",
    )

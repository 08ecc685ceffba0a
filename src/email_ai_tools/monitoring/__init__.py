"""Prometheus metrics for API calls, prompt budgeting and output parsing."""

from email_ai_tools.monitoring.metrics import (
    llm_latency_seconds,
    llm_rate_limit_retries_total,
    llm_requests_total,
    llm_tokens_total,
    output_parse_failures_total,
    prompt_characters_removed_total,
)

__all__ = [
    "llm_requests_total",
    "llm_rate_limit_retries_total",
    "llm_latency_seconds",
    "llm_tokens_total",
    "output_parse_failures_total",
    "prompt_characters_removed_total",
]

"""Prometheus metrics for Email AI tools.

Metrics are registered on the default ``prometheus_client`` registry; the
host application decides whether and where to expose them.
"""

from prometheus_client import Counter, Histogram

# === API Metrics ===

llm_requests_total = Counter(
    "email_ai_llm_requests_total",
    "Total API requests by endpoint and final HTTP status",
    ["endpoint", "status"],
)
"""
API requests counter.

Labels:
- endpoint: API path (/v1/chat/completions, /v1/completions, /v1/embeddings, /v1/models)
- status: final HTTP status code, or "error" for transport failures
"""

llm_rate_limit_retries_total = Counter(
    "email_ai_llm_rate_limit_retries_total",
    "Total retries caused by HTTP 429 responses",
    ["endpoint"],
)

llm_latency_seconds = Histogram(
    "email_ai_llm_latency_seconds",
    "API call latency in seconds, first to last attempt",
    ["endpoint", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

llm_tokens_total = Counter(
    "email_ai_llm_tokens_total",
    "Total tokens reported by the API",
    ["model"],
)

# === Prompt / Output Metrics ===

prompt_characters_removed_total = Counter(
    "email_ai_prompt_characters_removed_total",
    "Characters trimmed from input text to fit the token budget",
    ["feature"],
)

output_parse_failures_total = Counter(
    "email_ai_output_parse_failures_total",
    "Model outputs that could not be reconciled",
    ["mode"],
)
"""
Output parse failures.

Labels:
- mode: json (embedded JSON object), delimited (Answer:/Message-ID: blocks), schema
"""

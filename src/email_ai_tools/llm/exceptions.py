"""
Custom exceptions for the LLM client layer.

Three families:
- ConfigurationError: the request cannot be built (prompt budget too small,
  empty required input). Never retried.
- ApiError: the API answered with a failure. Carries the upstream error code
  and HTTP status. Rate limiting is retried inside the client; everything
  else, including an exhausted rate-limit budget, surfaces as ApiError.
- LLMConnectionError: no usable answer at the transport level.
"""


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.

    All LLM-specific exceptions inherit from this to allow catching
    any LLM-related error with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(LLMClientError):
    """Raised when a request cannot be built from the given input and options."""

    code = "ConfigurationError"


class PromptTooLongError(ConfigurationError):
    """
    Raised when the prompt exceeds the token budget even with an empty payload.

    The fixed instructions and schema text alone are larger than the
    configured budget, so trimming the input can never help.
    """

    code = "PROMPT_TOO_LONG"

    def __init__(
        self,
        characters_removed: int,
        original_length: int | None = None,
        max_tokens: int | None = None,
        message: str | None = None,
    ):
        super().__init__(
            message or f"Prompt too long. Removed {characters_removed} characters.",
            details={
                "characters_removed": characters_removed,
                "original_length": original_length,
                "max_tokens": max_tokens,
            },
        )
        self.characters_removed = characters_removed
        self.original_length = original_length
        self.max_tokens = max_tokens


class EmptyInputError(ConfigurationError):
    """Raised when a required input (e.g. the question text) is empty."""

    code = "EmptyInput"


class ApiError(LLMClientError):
    """
    Raised when the API returns a non-success response or an ``error`` object.

    ``code`` is the upstream error code (e.g. "context_length_exceeded")
    when the response body provides one.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message


class RateLimitExceededError(ApiError):
    """
    Raised when the API keeps answering HTTP 429 after every allowed attempt.
    """
    pass


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to reach the API.

    Includes network errors, DNS failures, aborted connections, etc.
    Not retried by the client.
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """Raised when an attempt exceeds the configured timeout."""
    pass


class LLMTransportError(LLMConnectionError):
    """
    Raised when a successful HTTP response does not carry a JSON object body.
    """
    pass

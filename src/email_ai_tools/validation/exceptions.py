"""
Exceptions raised while reconciling model output.

The API call succeeded, but the text the model produced could not be
turned into the expected result. These are never retried.
"""

from typing import Any


class ValidationError(Exception):
    """
    Base exception for all output reconciliation errors.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize validation error.

        Args:
            message: Human-readable error description
            details: Structured error data for logging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class OutputParseFailed(ValidationError):
    """
    The model output could not be interpreted as the expected shape.

    ``raw_text`` holds the complete output for diagnosis; the underlying
    error (JSON decode error, schema error) is chained as ``__cause__``.
    """

    code = "OutputParseFailed"

    def __init__(
        self,
        message: str,
        raw_text: str | None = None,
        parse_error: str | None = None,
        **extra: Any,
    ):
        """
        Initialize output parse error.

        Args:
            message: Error description
            raw_text: Model output that failed to parse
            parse_error: Message of the underlying parse error
            **extra: Additional diagnostics (e.g. brace positions)
        """
        details: dict[str, Any] = {}
        if raw_text:
            # First 500 chars in details to keep log lines bounded
            details["content_snippet"] = raw_text[:500]
        if parse_error:
            details["parse_error"] = parse_error
        details.update(extra)

        super().__init__(message, details)
        self.raw_text = raw_text
        self.parse_error = parse_error

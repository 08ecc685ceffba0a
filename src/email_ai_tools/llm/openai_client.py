"""
OpenAI-compatible API client.

Communicates with the completion, embeddings and model listing endpoints
using httpx AsyncClient. Supports:
- Chat and instruct (legacy completions) requests
- Fixed-delay retry on HTTP 429, bounded number of attempts
- Upstream error code/message propagation
- Connection pooling for sequential calls through one client
"""

import asyncio
import base64
import os
import time
from typing import Any, Optional, Union

import httpx
import structlog

from email_ai_tools import __version__
from email_ai_tools.config import get_settings
from email_ai_tools.llm.exceptions import (
    ApiError,
    LLMConnectionError,
    LLMTimeoutError,
    LLMTransportError,
    RateLimitExceededError,
)
from email_ai_tools.models.llm_models import (
    ApiResponse,
    ChatRequest,
    EmbeddingRequest,
    InstructRequest,
)
from email_ai_tools.monitoring.metrics import (
    llm_latency_seconds,
    llm_rate_limit_retries_total,
    llm_requests_total,
)

logger = structlog.get_logger(__name__)

USER_AGENT = f"email-ai-tools/{__version__}"

ApiRequest = Union[ChatRequest, InstructRequest, EmbeddingRequest]


def new_request_id() -> str:
    """Short random id used to correlate log lines of one API call."""
    return base64.b64encode(os.urandom(8)).decode("ascii")


class OpenAIClient:
    """
    Client for OpenAI-compatible HTTP APIs.

    API Endpoints:
    - POST /v1/chat/completions: chat-family models
    - POST /v1/completions: instruct-family models
    - POST /v1/embeddings: embedding vectors
    - GET /v1/models: available models

    Retry policy: HTTP 429 is retried after a fixed delay until
    ``max_attempts`` attempts were made; any other failure is terminal.
    """

    def __init__(
        self,
        api_token: str,
        base_url: Optional[str] = None,
        connect_timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            api_token: Bearer token for the API
            base_url: API base URL (default from settings)
            connect_timeout: Connect-phase timeout in seconds
            max_attempts: Total attempts when rate limited
            retry_delay: Seconds to wait between rate-limited attempts
            transport: Custom httpx transport (tests, proxies)
        """
        settings = get_settings()
        self.api_token = api_token
        self.base_url = (base_url or settings.OPENAI_API_BASE_URL).rstrip("/")
        self.connect_timeout = connect_timeout or settings.CONNECT_TIMEOUT
        self.max_attempts = max(1, max_attempts or settings.RATE_LIMIT_MAX_ATTEMPTS)
        self.retry_delay = settings.RATE_LIMIT_RETRY_DELAY if retry_delay is None else retry_delay

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        logger.debug(
            "API client initialized",
            base_url=self.base_url,
            connect_timeout=self.connect_timeout,
            max_attempts=self.max_attempts,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                # Only the connect phase is bounded; completions can take long
                timeout=httpx.Timeout(None, connect=self.connect_timeout),
                headers={
                    "User-Agent": USER_AGENT,
                    "Authorization": f"Bearer {self.api_token}",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def execute(self, request: ApiRequest) -> ApiResponse:
        """
        POST a completion or embedding request.

        Returns:
            ApiResponse with the decoded JSON body and timing

        Raises:
            ApiError: Non-success response or ``error`` object in the body
            RateLimitExceededError: Still rate limited after all attempts
            LLMConnectionError: Network failure or timeout
            LLMTransportError: Success response without a JSON object body
        """
        return await self._request("POST", request.path, request.to_payload())

    async def get(self, path: str) -> ApiResponse:
        """GET an API path (e.g. ``/v1/models``) with the same retry policy."""
        return await self._request("GET", path)

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> ApiResponse:
        request_id = new_request_id()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            return await self._send(request_id, method, path, payload)

    async def _send(
        self,
        request_id: str,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]],
    ) -> ApiResponse:
        log = logger.bind(method=method, path=path)
        client = await self._get_client()

        start_time = time.time()
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await client.request(method, path, json=payload)
            except httpx.TimeoutException as e:
                self._record(path, "error", start_time, success=False)
                log.warning("API request timeout", attempt=attempt, error=str(e))
                raise LLMTimeoutError(
                    f"Request timeout: {e}",
                    details={"attempt": attempt, "connect_timeout": self.connect_timeout},
                ) from e
            except httpx.HTTPError as e:
                self._record(path, "error", start_time, success=False)
                log.warning("API network error", attempt=attempt, error=str(e))
                raise LLMConnectionError(
                    f"Network error: {e}",
                    details={"attempt": attempt, "error_type": type(e).__name__},
                ) from e

            data = self._decode_body(response)

            if response.status_code == 429 and attempt < self.max_attempts:
                llm_rate_limit_retries_total.labels(endpoint=path).inc()
                log.info(
                    "Rate limited, retrying",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay=self.retry_delay,
                )
                await asyncio.sleep(self.retry_delay)
                continue
            break

        elapsed_ms = int((time.time() - start_time) * 1000)
        error = data.get("error") if isinstance(data, dict) else None

        if not response.is_success or error:
            self._record(path, str(response.status_code), start_time, success=False)
            raise self._api_error(response.status_code, error, attempt, log)

        if not isinstance(data, dict):
            self._record(path, str(response.status_code), start_time, success=False)
            log.error("API response is not a JSON object", status_code=response.status_code)
            raise LLMTransportError(
                "Failed to parse API response",
                details={"status_code": response.status_code, "body": response.text[:500]},
            )

        self._record(path, str(response.status_code), start_time, success=True)
        log.debug("API request completed", attempts=attempt, elapsed_ms=elapsed_ms)

        return ApiResponse(
            data=data,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
            attempts=attempt,
            request_id=request_id,
        )

    @staticmethod
    def _decode_body(response: httpx.Response) -> Any:
        """JSON body, or None when the body is empty or not JSON."""
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _api_error(status_code: int, error: Any, attempts: int, log) -> ApiError:
        error_class = RateLimitExceededError if status_code == 429 else ApiError
        if isinstance(error, dict):
            message = str(error.get("message") or "Failed to run API request")
            code = error.get("code")
        elif error:
            message, code = str(error), None
        else:
            message, code = "Failed to run API request", None

        log.error(
            "API request failed",
            status_code=status_code,
            code=code,
            error=message,
            attempts=attempts,
        )
        return error_class(
            message,
            code=str(code) if code is not None else None,
            status_code=status_code,
            details={"attempts": attempts},
        )

    @staticmethod
    def _record(path: str, status: str, start_time: float, success: bool) -> None:
        llm_requests_total.labels(endpoint=path, status=status).inc()
        llm_latency_seconds.labels(endpoint=path, success=str(success).lower()).observe(
            time.time() - start_time
        )

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url})"

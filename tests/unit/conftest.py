"""Unit test fixtures (mocks and stubs).

Provides a scripted fake of the HTTP API so the client and the features
can be tested without network access.
"""

import json
import pytest
import httpx
from typing import Any, Dict, List, Tuple, Union

from email_ai_tools.llm.openai_client import OpenAIClient

ScriptedResponse = Union[Tuple[int, Any], httpx.Response, Exception]


class FakeAPI:
    """Scripted httpx handler that records every request it receives.

    Responses are consumed in order; the last one repeats once the script
    runs out. Entries are ``(status, json_body)`` tuples, ready-made
    ``httpx.Response`` objects, or exceptions to raise.
    """

    def __init__(self, responses: List[ScriptedResponse]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entry = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, httpx.Response):
            return entry
        status, body = entry
        return httpx.Response(status, json=body)

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests if request.content]

    @property
    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]

    def client(self, **kwargs) -> OpenAIClient:
        kwargs.setdefault("base_url", "https://api.test")
        kwargs.setdefault("retry_delay", 0)
        return OpenAIClient(
            "sk-test",
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


@pytest.fixture
def fake_api():
    """Factory: ``fake_api((200, body), ...)`` returns a FakeAPI."""

    def _make(*responses: ScriptedResponse) -> FakeAPI:
        return FakeAPI(list(responses))

    return _make


@pytest.fixture
def big_budget() -> Dict[str, Any]:
    """Options with a token budget large enough for any packaged prompt.

    The character tokenizer counts every character as a token, so the
    default 4000 token budget is too small for the long instructions.
    """
    return {"max_tokens": 100_000}

"""Unit tests for risk_analysis."""

import json
import pytest

from email_ai_tools.features.risk import risk_analysis
from email_ai_tools.llm.exceptions import ApiError, LLMTransportError


def _prompt_payload(api) -> dict:
    content = api.payloads[0]["messages"][1]["content"]
    return json.loads(content.rsplit("\n\n", 1)[1])


class TestRiskAnalysis:
    """Test suite for the risk feature."""

    @pytest.mark.asyncio
    async def test_risk_score(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget):
        api = fake_api((200, completion_body('{"risk": "4", "assessment": "Sender domain has a typo."}')))

        result = await risk_analysis(
            sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
        )

        assert result.risk == 4
        assert result.assessment == "Sender domain has a typo."
        assert result.id == "chatcmpl-1"
        assert result.model == "gpt-3.5-turbo"

    @pytest.mark.asyncio
    async def test_diagnostics_always_present(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget):
        """Test that elapsed time and characters removed are reported without verbose mode."""
        api = fake_api((200, completion_body('{"risk": 1, "assessment": "ok"}')))

        result = await risk_analysis(
            sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
        )

        assert result.elapsed_time is not None
        assert result.characters_removed == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("risk", ['"unknown"', "0", "null"])
    async def test_unusable_score_is_sentinel(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget, risk):
        api = fake_api((200, completion_body(f'{{"risk": {risk}, "assessment": "?"}}')))

        result = await risk_analysis(
            sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
        )

        assert result.risk == -1

    @pytest.mark.asyncio
    async def test_fixed_header_whitelist(self, fake_api, completion_body, sample_message_data, char_tokenizer):
        """Test that allowedHeaders does not widen the risk whitelist."""
        api = fake_api((200, completion_body('{"risk": 2, "assessment": "x"}')))

        await risk_analysis(
            sample_message_data,
            "sk-test",
            {"maxTokens": 100_000, "allowedHeaders": ["message-id", "arc-seal"]},
            tokenizer=char_tokenizer,
            client=api.client(),
        )

        headers = _prompt_payload(api)["headers"]
        keys = [h["key"] for h in headers]
        assert "message-id" not in keys
        assert "arc-seal" not in keys
        assert keys.count("authentication-results") == 1
        assert headers[0]["value"].startswith("mx.example.com")

    @pytest.mark.asyncio
    async def test_html_needs_twice_the_length(self, fake_api, completion_body, char_tokenizer, big_budget):
        api = fake_api(
            (200, completion_body('{"risk": 2, "assessment": "x"}')),
            (200, completion_body('{"risk": 2, "assessment": "x"}')),
        )
        html = "<p>" + "a" * 20 + "</p>"

        await risk_analysis({"text": "t" * 14, "html": html}, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client())
        await risk_analysis({"text": "t" * 13, "html": html}, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client())

        texts = [json.loads(p["messages"][1]["content"].rsplit("\n\n", 1)[1])["text"] for p in api.payloads]
        assert texts == ["t" * 14, "a" * 20]

    @pytest.mark.asyncio
    async def test_api_error_propagates(self, fake_api, sample_message_data, char_tokenizer, big_budget):
        api = fake_api((401, {"error": {"message": "Incorrect API key provided", "code": "invalid_api_key"}}))

        with pytest.raises(ApiError) as exc_info:
            await risk_analysis(
                sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
            )

        assert exc_info.value.code == "invalid_api_key"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"id": "x", "choices": "oops"},
            {"id": "x", "choices": [{"message": {"role": "assistant", "content": [{"type": "text", "text": "{}"}]}}]},
        ],
    )
    async def test_unexpected_envelope(self, fake_api, sample_message_data, char_tokenizer, big_budget, body):
        api = fake_api((200, body))

        with pytest.raises(LLMTransportError) as exc_info:
            await risk_analysis(
                sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
            )

        assert exc_info.value.message == "Failed to parse API response"
        assert exc_info.value.details["path"] == "/v1/chat/completions"
        assert exc_info.value.details["errors"]

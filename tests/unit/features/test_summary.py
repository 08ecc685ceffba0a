"""Unit tests for generate_summary."""

import json
import pytest

from email_ai_tools.features.summary import generate_summary
from email_ai_tools.llm.exceptions import PromptTooLongError
from email_ai_tools.llm.prompt_builder import (
    build_content_payload,
    get_prompt_builder,
    resolve_allowed_headers,
)
from email_ai_tools.models.input_models import Message
from email_ai_tools.validation.exceptions import OutputParseFailed

SUMMARY_OUTPUT = json.dumps(
    {
        "sentiment": "neutral",
        "summary": "James invites Andris to the quarterly review on Friday.",
        "shouldReply": True,
        "riskAssessment": {"risk": 1, "assessment": "Known sender, authentication passed."},
        "events": [
            {
                "description": "Quarterly review",
                "location": "Room 4",
                "startTime": "2023-10-06 10:00:00",
                "type": "meeting",
            }
        ],
        "actions": [{"description": "Bring the numbers", "dueDate": "2023-10-06"}],
    }
)


def _prompt_payload(api) -> dict:
    """Email JSON embedded at the end of the user message."""
    content = api.payloads[0]["messages"][1]["content"]
    return json.loads(content.rsplit("\n\n", 1)[1])


class TestGenerateSummary:
    """Test suite for the summary feature."""

    @pytest.mark.asyncio
    async def test_summary_result(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget):
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))

        result = await generate_summary(
            sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
        )

        assert result.id == "chatcmpl-1"
        assert result.tokens == 123
        assert result.model == "gpt-3.5-turbo"
        assert result.sentiment == "neutral"
        assert result.should_reply is True
        assert result.risk_assessment.risk == 1
        assert result.events[0].type == "meeting"
        assert result.actions[0].due_date == "2023-10-06"
        assert result.elapsed_time is None
        assert result.characters_removed is None

    @pytest.mark.asyncio
    async def test_request_shape(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget):
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))

        await generate_summary(
            sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
        )

        assert api.paths == ["/v1/chat/completions"]
        messages = api.payloads[0]["messages"]
        assert messages[0] == {
            "role": "system",
            "content": "I want you to act as an executive assistant that processes emails for reporting.",
        }
        assert messages[1]["content"].startswith("Instructions:\n- You are an executive assistant")
        assert "Input facts:" in messages[1]["content"]

        payload = _prompt_payload(api)
        assert payload["text"] == sample_message_data["text"]
        assert payload["attachments"] == [{"filename": "slides.pdf", "contentType": "application/pdf"}]
        assert [h["key"] for h in payload["headers"]] == [
            "authentication-results", "from", "to", "cc", "subject", "date",
        ]

    @pytest.mark.asyncio
    async def test_extra_allowed_headers(self, fake_api, completion_body, sample_message_data, char_tokenizer):
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))

        await generate_summary(
            sample_message_data,
            "sk-test",
            {"maxTokens": 100_000, "allowedHeaders": ["Message-ID"]},
            tokenizer=char_tokenizer,
            client=api.client(),
        )

        keys = [h["key"] for h in _prompt_payload(api)["headers"]]
        assert "message-id" in keys

    @pytest.mark.asyncio
    async def test_html_body_preferred_when_longer(self, fake_api, completion_body, char_tokenizer, big_budget):
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))
        message = {"text": "View in browser", "html": "<p>Your <b>invoice</b> for October is attached.</p>"}

        await generate_summary(message, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client())

        assert _prompt_payload(api)["text"] == "Your invoice for October is attached."

    @pytest.mark.asyncio
    async def test_text_trimmed_to_budget(self, fake_api, completion_body, sample_message_data, char_tokenizer):
        """Test that the body is cut from the end until the prompt fits."""
        builder = get_prompt_builder()
        payload = build_content_payload(Message.coerce(sample_message_data), resolve_allowed_headers())
        empty_prompt = builder.render_email_prompt(
            builder.render("summary_instructions.txt"),
            payload.to_prompt_json(""),
            builder.render("summary_input_schema.txt"),
        )
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))

        result = await generate_summary(
            sample_message_data,
            "sk-test",
            {"maxTokens": len(empty_prompt) + 10, "verbose": True},
            tokenizer=char_tokenizer,
            client=api.client(),
        )

        assert _prompt_payload(api)["text"] == "Hi Andris,"
        assert result.characters_removed == len(sample_message_data["text"]) - len("Hi Andris,")
        assert result.elapsed_time is not None

    @pytest.mark.asyncio
    async def test_prompt_too_long_makes_no_request(self, fake_api, completion_body, sample_message_data, char_tokenizer):
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))

        with pytest.raises(PromptTooLongError):
            await generate_summary(
                sample_message_data, "sk-test", {"maxTokens": 100}, tokenizer=char_tokenizer, client=api.client()
            )

        assert api.requests == []

    @pytest.mark.asyncio
    async def test_prompt_overrides(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget):
        api = fake_api((200, completion_body(SUMMARY_OUTPUT)))

        await generate_summary(
            sample_message_data,
            "sk-test",
            {**big_budget, "systemPrompt": "You are terse.", "userPrompt": "Summarize in JSON."},
            tokenizer=char_tokenizer,
            client=api.client(),
        )

        messages = api.payloads[0]["messages"]
        assert messages[0]["content"] == "You are terse."
        assert messages[1]["content"].startswith("Summarize in JSON.\nInput facts:")

    @pytest.mark.asyncio
    async def test_unparseable_output(self, fake_api, completion_body, sample_message_data, char_tokenizer, big_budget):
        api = fake_api((200, completion_body("Sorry, I cannot summarize this email.")))

        with pytest.raises(OutputParseFailed) as exc_info:
            await generate_summary(
                sample_message_data, "sk-test", big_budget, tokenizer=char_tokenizer, client=api.client()
            )

        assert exc_info.value.raw_text == "Sorry, I cannot summarize this email."

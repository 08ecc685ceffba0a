"""
Unit tests for Answer:/Message-ID: parsing.
"""

from email_ai_tools.validation.delimited_output import DelimitedAnswerParser


class TestDelimitedAnswerParser:
    """Test suite for DelimitedAnswerParser."""

    def setup_method(self):
        self.parser = DelimitedAnswerParser()

    def test_answer_and_message_ids(self):
        text = "Answer: The meeting is on Friday.\nMessage-ID: <a@example.com>, <b@example.com>"

        assert self.parser.parse(text) == {
            "answer": "The meeting is on Friday.",
            "messageId": ["<a@example.com>", "<b@example.com>"],
        }

    def test_case_insensitive_keys(self):
        text = "ANSWER: yes\nmessage-id: <a@example.com>"

        assert self.parser.parse(text) == {"answer": "yes", "messageId": ["<a@example.com>"]}

    def test_text_before_first_key_ignored(self):
        text = "Based on the emails provided.\nAnswer: 42\nMessage-ID: <a@example.com>"

        assert self.parser.parse(text)["answer"] == "42"

    def test_repeated_keys_accumulate(self):
        text = (
            "Answer: First part.\n"
            "Message-ID: <a@example.com>\n"
            "Answer: Second part.\n"
            "Message-ID: <b@example.com>, <a@example.com>"
        )
        result = self.parser.parse(text)

        assert result["answer"] == "First part.\nSecond part."
        assert result["messageId"] == ["<a@example.com>", "<b@example.com>"]

    def test_message_ids_on_separate_lines(self):
        text = "Answer: yes\nMessage-ID: <a@example.com>\n<b@example.com>"

        assert self.parser.parse(text)["messageId"] == ["<a@example.com>", "<b@example.com>"]

    def test_crlf_line_endings(self):
        text = "Answer: yes\r\nMessage-ID: <a@example.com>\r\n"

        assert self.parser.parse(text) == {"answer": "yes", "messageId": ["<a@example.com>"]}

    def test_no_keys(self):
        assert self.parser.parse("I could not find an answer.") == {"answer": "", "messageId": []}

    def test_multiline_answer(self):
        text = "Answer: Line one\nLine two\nMessage-ID: <a@example.com>"

        assert self.parser.parse(text)["answer"] == "Line one\nLine two"

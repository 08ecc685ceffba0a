"""Unit tests for text processing utilities."""

import pytest

from email_ai_tools.llm.text_utils import (
    decode_idna_domain,
    decode_mime_words,
    format_address_list,
    format_header_date,
    html_to_text,
    parse_address_list,
    reduce_link,
    reduce_links,
    replace_surrogates,
    select_message_text,
    strip_quoted_lines,
)


class TestBodySelection:
    """Test choosing between plain text and HTML bodies."""

    def test_plain_text_only(self):
        assert select_message_text("Hello", None) == "Hello"

    def test_html_when_text_missing(self):
        assert select_message_text("", "<p>Hello <b>world</b></p>") == "Hello world"

    def test_html_at_least_as_long_wins(self):
        html = "<p>Full newsletter body</p>"
        assert select_message_text("x" * len(html), html) == "Full newsletter body"

    def test_shorter_html_loses(self):
        assert select_message_text("Plain text body that is long", "<p>Hi</p>") == "Plain text body that is long"

    def test_length_factor(self):
        """Test that a factor of 2 needs HTML at least twice as long as the text."""
        html = "<p>" + "a" * 20 + "</p>"  # 27 characters
        assert select_message_text("t" * 14, html, html_length_factor=2.0) == "t" * 14
        assert select_message_text("t" * 13, html, html_length_factor=2.0) == "a" * 20

    def test_html_to_text_drops_images(self):
        text = html_to_text('<p>See <img src="x.png" alt="chart"> below</p>')
        assert "x.png" not in text
        assert "See" in text and "below" in text


class TestLinks:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com/a/b?c=d", "https://example.com"),
            ("http://user@example.com:8080/path", "http://example.com:8080"),
            ("www.example.com/page", "http://www.example.com"),
            ("ftp://files.example.com/pub", "ftp://files.example.com"),
        ],
    )
    def test_reduce_link(self, url, expected):
        assert reduce_link(url) == expected

    def test_reduce_links_in_text(self):
        text = "Click https://track.example.com/abc?id=123 or visit www.example.org/x now."
        assert reduce_links(text) == "Click https://track.example.com or visit http://www.example.org now."

    def test_text_without_links_unchanged(self):
        assert reduce_links("Nothing to see here.") == "Nothing to see here."


class TestQuotedLines:
    def test_quoted_lines_removed_and_blank_runs_collapsed(self):
        text = "Sounds good.\r\n\r\nOn Monday James wrote:\r\n> Shall we meet?\r\n>\r\n  \r\n\r\nThanks"
        assert strip_quoted_lines(text) == "Sounds good.\n\nOn Monday James wrote:\n\nThanks"


class TestHeaders:
    """Test decoding of address, subject and date headers."""

    def test_decode_mime_words(self):
        assert decode_mime_words("=?utf-8?q?Tere_=C3=B5htust?=") == "Tere õhtust"

    def test_decode_plain_words(self):
        assert decode_mime_words("Quarterly review") == "Quarterly review"

    def test_decode_idna_domain(self):
        assert decode_idna_domain("xn--mller-kva.de") == "müller.de"
        assert decode_idna_domain("example.com") == "example.com"

    def test_parse_address_list_flattens_groups(self):
        addresses = parse_address_list("Team: Ann <ann@example.com>, bob@example.com;, Carl <carl@example.com>")

        assert addresses == [
            ("Ann", "ann@example.com"),
            ("", "bob@example.com"),
            ("Carl", "carl@example.com"),
        ]

    def test_parse_address_list_decodes_names_and_domains(self):
        addresses = parse_address_list("=?utf-8?q?J=C3=BCrgen?= <j@xn--mller-kva.de>")

        assert addresses == [("Jürgen", "j@müller.de")]

    def test_parse_address_list_unfolds_lines(self):
        addresses = parse_address_list("Ann <ann@example.com>,\r\n Bob <bob@example.com>")

        assert addresses == [("Ann", "ann@example.com"), ("Bob", "bob@example.com")]

    def test_parse_address_list_malformed_address(self):
        addresses = parse_address_list("a@")

        assert addresses
        assert "a" in format_address_list(addresses)

    def test_parse_address_list_undecodable_name(self):
        """Test that broken encoded words never leave surrogates behind."""
        addresses = parse_address_list("=?utf-8?b?zzz?= <a@b.c>")

        formatted = format_address_list(addresses)
        assert formatted
        formatted.encode("utf-8")

    def test_replace_surrogates(self):
        assert replace_surrogates("ab\udccfc") == "ab?c"
        assert replace_surrogates("Jürgen") == "Jürgen"

    def test_format_address_list(self):
        formatted = format_address_list([("Ann", "ann@example.com"), ("", "bob@example.com"), ("", "")])

        assert formatted == "Ann <ann@example.com> ; <bob@example.com>"

    def test_format_header_date_to_utc(self):
        assert format_header_date("Sun, 1 Oct 2023 06:30:26 +0200") == "Sun, 01 Oct 2023 04:30:26 GMT"

    def test_format_header_date_invalid(self):
        assert format_header_date("not a date") is None
        assert format_header_date("") is None

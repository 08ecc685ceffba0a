"""
Text processing utilities for the LLM layer.

Prepares message content for prompts and embeddings:
- choosing between the plain text and the HTML body
- reducing links to scheme and host
- dropping quoted reply lines
- decoding and formatting address, subject and date headers
"""

import re
from datetime import timezone
from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.headerregistry import HeaderRegistry
from email.utils import format_datetime, getaddresses, parsedate_to_datetime
from typing import Optional
from urllib.parse import urlsplit

import html2text

_header_registry = HeaderRegistry()

LINK_PATTERN = re.compile(r"\b(?:https?|ftp)://[^\s<>\"'()]+|\bwww\.[^\s<>\"'()]+", re.IGNORECASE)
QUOTED_LINE_PATTERN = re.compile(r"^[ \t]*>.*$", re.MULTILINE)
BLANK_LINE_PATTERN = re.compile(r"^[ \t]+$", re.MULTILINE)
REPEATED_NEWLINES_PATTERN = re.compile(r"\n\n+")
FOLDED_LINE_PATTERN = re.compile(r"[\r\n]+[ \t]*")


def html_to_text(html: str) -> str:
    """Convert an HTML body to plain text (markdown-ish, no line wrapping)."""
    converter = html2text.HTML2Text()
    converter.ignore_links = False
    converter.ignore_images = True
    converter.ignore_emphasis = True
    converter.body_width = 0  # Don't wrap lines
    return converter.handle(html).strip()


def select_message_text(
    text: Optional[str],
    html: Optional[str],
    html_length_factor: float = 1.0,
) -> str:
    """
    Pick the body representation to analyze.

    The HTML body is converted and used instead of the plain text when there
    is no plain text, or when the HTML is at least ``html_length_factor``
    times longer (plain text parts are often stubs like "View in browser").

    Examples:
        >>> select_message_text("Hello", None)
        'Hello'
        >>> select_message_text("", "<p>Hello</p>")
        'Hello'
    """
    text = text or ""
    if html and (not text or len(html) >= len(text) * html_length_factor):
        return html_to_text(html)
    return text


def reduce_link(url: str) -> str:
    """
    Replace a URL with its scheme and host.

    Path and query often carry tracking tokens that only add noise to
    embeddings.

    Examples:
        >>> reduce_link("https://example.com/a/b?c=d")
        'https://example.com'
        >>> reduce_link("www.example.com/page")
        'http://www.example.com'
    """
    if not re.match(r"^[a-z]+://", url, re.IGNORECASE):
        url = f"http://{url}"
    try:
        parts = urlsplit(url)
    except ValueError:
        return " "
    host = parts.netloc.rpartition("@")[2]
    if not host:
        return " "
    return f"{parts.scheme}://{host}"


def reduce_links(text: str) -> str:
    """Reduce every link in ``text`` to scheme and host."""
    return LINK_PATTERN.sub(lambda match: reduce_link(match.group(0)), text)


def strip_quoted_lines(text: str) -> str:
    """
    Normalize line endings, drop quoted (``>``) lines and collapse blank runs.
    """
    text = text.replace("\r\n", "\n")
    text = QUOTED_LINE_PATTERN.sub("", text)
    text = BLANK_LINE_PATTERN.sub("", text)
    return REPEATED_NEWLINES_PATTERN.sub("\n\n", text)


def decode_mime_words(value: str) -> str:
    """
    Decode RFC 2047 encoded words, leaving undecodable input as is.

    Examples:
        >>> decode_mime_words("=?utf-8?q?Tere_=C3=B5htust?=")
        'Tere õhtust'
    """
    try:
        return replace_surrogates(str(make_header(decode_header(value))))
    except (HeaderParseError, ValueError, LookupError):
        return replace_surrogates(value)


def replace_surrogates(value: str) -> str:
    """Replace lone surrogates left by undecodable bytes with ``?``."""
    return value.encode("utf-8", "replace").decode("utf-8")


def decode_idna_domain(domain: str) -> str:
    """Convert punycode (``xn--``) domain labels to Unicode."""
    if "xn--" not in domain.lower():
        return domain
    try:
        return domain.encode("ascii").decode("idna")
    except UnicodeError:
        return domain


def parse_address_list(value: str) -> list[tuple[str, str]]:
    """
    Parse an address header into ``(name, address)`` pairs.

    Groups are flattened, display names are RFC 2047 decoded and IDNA
    domains converted to Unicode. Folded lines are unfolded first.
    Values the strict parser rejects go through ``getaddresses``; if that
    finds nothing either, the whole value becomes a single display name.
    """
    value = FOLDED_LINE_PATTERN.sub(" ", value or "").strip()
    try:
        header = _header_registry("to", value)
        parts = [
            (address.display_name or "", address.username or "", address.domain or "")
            for address in header.addresses
        ]
    except (HeaderParseError, ValueError, IndexError):
        parts = []
        for name, addr in getaddresses([value]):
            username, at, domain = addr.rpartition("@")
            if not (at and domain):
                username, domain = addr, ""
            parts.append((decode_mime_words(name), username, domain))
        if value and not any(name or username for name, username, _ in parts):
            parts = [(decode_mime_words(value), "", "")]

    result = []
    for name, username, domain in parts:
        name = replace_surrogates(name).strip()
        addr = replace_surrogates(username)
        if domain:
            addr = f"{addr}@{decode_idna_domain(replace_surrogates(domain))}"
        if name or addr:
            result.append((name, addr))
    return result


def format_address_list(addresses: list[tuple[str, str]]) -> str:
    """
    Format ``(name, address)`` pairs as ``Name <addr> ; Other <addr2>``.
    """
    formatted = []
    for name, addr in addresses:
        parts = []
        if name:
            parts.append(name)
        if addr:
            parts.append(f"<{addr}>")
        if parts:
            formatted.append(" ".join(parts))
    return " ; ".join(formatted)


def format_header_date(value: str) -> Optional[str]:
    """
    Normalize an RFC 2822 date header to UTC, or None if unparseable.

    Examples:
        >>> format_header_date("1 Oct 2023 06:30:26 +0200")
        'Sun, 01 Oct 2023 04:30:26 GMT'
    """
    try:
        parsed = parsedate_to_datetime((value or "").strip())
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return format_datetime(parsed.astimezone(timezone.utc), usegmt=True)

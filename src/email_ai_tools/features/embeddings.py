"""
Embeddings for email messages.

A message is split into chunks of roughly ``chunk_size`` tokens. Every
chunk starts with the same short header block (from, to, subject, date,
attachments), so each one can be stored and matched on its own.
"""

import re
from typing import Any, Optional

import structlog

from email_ai_tools.config import get_settings
from email_ai_tools.features.base import api_client, parse_envelope, record_tokens
from email_ai_tools.llm.openai_client import OpenAIClient
from email_ai_tools.llm.text_utils import (
    decode_mime_words,
    format_address_list,
    format_header_date,
    parse_address_list,
    reduce_links,
    select_message_text,
    strip_quoted_lines,
)
from email_ai_tools.llm.tokenizer import Tokenizer, get_tokenizer
from email_ai_tools.models.input_models import Message, RequestOptions
from email_ai_tools.models.llm_models import EmbeddingEnvelope, EmbeddingRequest
from email_ai_tools.models.output_models import EmbeddingChunk, EmbeddingsResult

logger = structlog.get_logger(__name__)

FEATURE = "embeddings"

ADDRESS_HEADERS = {"from": "from", "to": "to", "cc": "to", "bcc": "to"}

WHITESPACE_PATTERN = re.compile(r"\s")


def _single_line(value: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", value)


async def get_chunk_embeddings(
    chunk: str,
    api_token: str,
    options: RequestOptions | dict[str, Any] | None = None,
    client: Optional[OpenAIClient] = None,
) -> EmbeddingChunk:
    """
    Embed one chunk of text.

    Returns:
        EmbeddingChunk with the vector (None if the API returned no data)
        and the request time in milliseconds
    """
    options = RequestOptions.coerce(options)
    model = options.gpt_model or get_settings().DEFAULT_EMBEDDINGS_MODEL
    request = EmbeddingRequest(model=model, input=chunk, user=options.user or None)

    with structlog.contextvars.bound_contextvars(feature=FEATURE, model=model):
        if options.verbose:
            logger.info("Composed request", path=request.path, payload=request.to_payload())

        async with api_client(api_token, options, client) as api:
            response = await api.execute(request)

        envelope = parse_envelope(EmbeddingEnvelope, response.data, request.path)
        record_tokens(model, envelope.usage.total_tokens if envelope.usage else None)

        if options.verbose:
            logger.info(
                "Embedding received",
                dimensions=len(envelope.first_embedding or []),
                elapsed_ms=response.elapsed_ms,
            )

    return EmbeddingChunk(
        chunk=chunk,
        embedding=envelope.first_embedding,
        elapsed_time=response.elapsed_ms,
    )


class Embedder:
    """
    Splits one message into header-prefixed chunks and embeds them.

    Header parsing happens on construction; ``chunks()`` is pure and can be
    used without any API access.
    """

    def __init__(
        self,
        message: Message | dict[str, Any],
        options: RequestOptions | dict[str, Any] | None = None,
        tokenizer: Optional[Tokenizer] = None,
    ):
        settings = get_settings()
        self.message = Message.coerce(message)
        self.options = RequestOptions.coerce(options)
        self.chunk_size = self.options.chunk_size or settings.EMBEDDINGS_CHUNK_SIZE
        self.min_body_tokens = settings.MIN_CHUNK_BODY_TOKENS
        self.model = self.options.gpt_model or settings.DEFAULT_EMBEDDINGS_MODEL
        self.tokenizer = tokenizer or get_tokenizer()

        # Insertion order follows the first occurrence of each header
        self.addresses: dict[str, list[tuple[str, str]]] = {}
        self.subject: Optional[str] = None
        self.date: Optional[str] = None

        for header in self.message.headers:
            if header.key in ADDRESS_HEADERS:
                target = ADDRESS_HEADERS[header.key]
                self.addresses.setdefault(target, []).extend(parse_address_list(header.value))
            elif header.key == "subject":
                subject = _single_line(decode_mime_words(header.value)).strip()
                if subject:
                    self.subject = subject
            elif header.key == "date":
                date = format_header_date(header.value)
                if date:
                    self.date = date

        text = select_message_text((self.message.text or "").strip(), self.message.html)
        self.text = reduce_links(text)

    def header_block(self) -> str:
        """Header lines followed by an empty line."""
        lines = []
        for key, addresses in self.addresses.items():
            formatted = format_address_list(addresses)
            if formatted:
                lines.append(f"{key}: {_single_line(formatted)}")

        if self.subject:
            lines.append(f"subject: {self.subject}")
        if self.date:
            lines.append(f"date: {self.date}")

        filenames = [
            _single_line(attachment.filename).strip()
            for attachment in self.message.attachments
            if attachment.filename
        ]
        filenames = [name for name in filenames if name]
        if filenames:
            lines.append(f"attachments: {' ; '.join(filenames)}")

        return "\n".join(lines) + "\n\n"

    def body_tokens_per_chunk(self, header: str) -> int:
        """
        Token budget for the text part of each chunk.

        A large header block grows the chunk instead of squeezing the text,
        so every chunk carries at least ``min_body_tokens`` tokens of text.
        """
        header_tokens = len(self.tokenizer.encode(header))
        allowed = max(header_tokens + self.min_body_tokens, self.chunk_size)
        return allowed - header_tokens

    def chunks(self) -> list[str]:
        """Header-prefixed chunks in message order."""
        header = self.header_block()
        step = self.body_tokens_per_chunk(header)

        tokens = self.tokenizer.encode(strip_quoted_lines(self.text)) if self.text else []
        if not tokens:
            return [header]

        return [
            header + self.tokenizer.decode(tokens[pos:pos + step])
            for pos in range(0, len(tokens), step)
        ]

    async def embeddings(
        self,
        api_token: str,
        client: Optional[OpenAIClient] = None,
    ) -> EmbeddingsResult:
        """Embed all chunks one after another, in order."""
        chunks = self.chunks()
        logger.info("Embedding message", chunks=len(chunks), model=self.model, chunk_size=self.chunk_size)

        results = []
        async with api_client(api_token, self.options, client) as api:
            for chunk in chunks:
                results.append(
                    await get_chunk_embeddings(chunk, api_token, self.options, client=api)
                )

        return EmbeddingsResult(model=self.model, embeddings=results)


async def generate_embeddings(
    message: Message | dict[str, Any],
    api_token: str,
    options: RequestOptions | dict[str, Any] | None = None,
    tokenizer: Optional[Tokenizer] = None,
    client: Optional[OpenAIClient] = None,
) -> EmbeddingsResult:
    """
    Chunk a message and embed every chunk.

    Options used: ``gpt_model`` (embedding model), ``chunk_size``,
    ``user``, ``base_api_url`` and ``verbose``.
    """
    embedder = Embedder(message, options, tokenizer=tokenizer)
    return await embedder.embeddings(api_token, client=client)

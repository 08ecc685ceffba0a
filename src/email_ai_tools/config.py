"""
Configuration settings for Email AI tools.

All settings are loaded from environment variables (prefix ``EMAIL_AI_``)
with sensible defaults. Per-call ``RequestOptions`` override these values.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === API ===
    OPENAI_API_BASE_URL: str = "https://api.openai.com"
    CONNECT_TIMEOUT: float = 90.0  # seconds, connect phase only
    RATE_LIMIT_MAX_ATTEMPTS: int = 5  # total attempts on HTTP 429
    RATE_LIMIT_RETRY_DELAY: float = 1.0  # seconds between 429 retries

    # === Models ===
    DEFAULT_CHAT_MODEL: str = "gpt-3.5-turbo"
    DEFAULT_QUESTION_MODEL: str = "gpt-3.5-turbo-instruct"
    DEFAULT_EMBEDDINGS_MODEL: str = "text-embedding-ada-002"

    # === Prompt budget ===
    MAX_ALLOWED_TOKENS: int = 4000
    MAX_ALLOWED_TEXT_LENGTH: int = 32 * 1024  # chars, applied before tokenizing
    INSTRUCT_TOKEN_CEILING: int = 4000  # prompt + completion for instruct models
    TOKEN_ENCODING: str = "cl100k_base"

    # === Embeddings ===
    EMBEDDINGS_CHUNK_SIZE: int = 400  # tokens per chunk, header included
    MIN_CHUNK_BODY_TOKENS: int = 200

    # === Query ===
    QUESTION_TEMPERATURE: float = 0.2


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()

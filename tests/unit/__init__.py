"""
Unit tests for email-ai-tools.

Components are tested in isolation; HTTP goes through an httpx mock
transport and token counts through a one-character-per-token tokenizer.
"""

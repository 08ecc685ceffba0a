"""
Extract the model's text from a completion envelope.
"""

from email_ai_tools.models.llm_models import CompletionChoice, CompletionEnvelope


def choice_text(choice: CompletionChoice) -> str:
    """Assistant message content (chat) or ``text`` (legacy completions)."""
    if choice.message is not None:
        if choice.message.role == "assistant" and choice.message.content:
            return choice.message.content
        return ""
    return choice.text or ""


def extract_output_text(envelope: CompletionEnvelope) -> str:
    """
    Concatenate all non-empty choices in index order.

    The API does not guarantee the order of choices for multi-completion
    requests, so they are sorted by ``index`` (missing index counts as 0)
    before joining. The result is stripped.
    """
    choices = [choice for choice in envelope.choices if choice_text(choice)]
    choices.sort(key=lambda choice: choice.index or 0)
    return "".join(choice_text(choice) for choice in choices).strip()

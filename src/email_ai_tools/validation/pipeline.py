"""
Response reconciliation pipeline.

Turns a completion envelope into a typed result:
- Step 1: Extract the output text (choices sorted by index, joined)
- Step 2: Interpret it (embedded JSON object, or Answer:/Message-ID: blocks)
- Step 3: Merge API metadata (id, tokens, model) over the parsed values
- Step 4: Validate into the feature's result model

Every failure surfaces as OutputParseFailed with the raw output attached.
"""

from typing import Any, Optional, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from email_ai_tools.models.enums import ParseMode
from email_ai_tools.models.llm_models import CompletionEnvelope
from email_ai_tools.monitoring.metrics import output_parse_failures_total
from .delimited_output import DelimitedAnswerParser
from .exceptions import OutputParseFailed
from .extraction import extract_output_text
from .json_output import EmbeddedJSONParser

logger = structlog.get_logger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)


def merge_metadata(
    values: dict[str, Any],
    envelope: CompletionEnvelope,
    model: Optional[str],
) -> dict[str, Any]:
    """
    Overlay parsed values on the metadata template, then overwrite the
    metadata from the envelope so the model cannot spoof ``id``, ``tokens``
    or ``model``.
    """
    return {
        "id": None,
        "tokens": None,
        "model": None,
        **values,
        "id": envelope.id,
        "tokens": envelope.total_tokens,
        "model": model,
    }


class ResponseReconciler:
    """
    Reconcile completion envelopes into feature result models.
    """

    def __init__(self):
        self.json_parser = EmbeddedJSONParser()
        self.delimited_parser = DelimitedAnswerParser()

    def interpret(self, text: str, mode: ParseMode) -> dict[str, Any]:
        """Parse output text according to ``mode``."""
        if mode is ParseMode.DELIMITED:
            return self.delimited_parser.parse(text)
        return self.json_parser.parse(text)

    def reconcile(
        self,
        envelope: CompletionEnvelope | dict[str, Any],
        mode: ParseMode,
        result_type: type[ResultT],
        model: Optional[str],
        extra: Optional[dict[str, Any]] = None,
        verbose: bool = False,
    ) -> ResultT:
        """
        Run the full reconciliation for one envelope.

        Args:
            envelope: Completion envelope (model or decoded JSON body)
            mode: Output interpretation mode
            result_type: Result model to validate into
            model: Model identifier the request was sent with
            extra: Additional fields merged last (e.g. verbose diagnostics)
            verbose: Log the raw output text

        Returns:
            Validated ``result_type`` instance

        Raises:
            OutputParseFailed: If the output cannot be interpreted or validated
        """
        if not isinstance(envelope, CompletionEnvelope):
            envelope = CompletionEnvelope.model_validate(envelope)

        output = extract_output_text(envelope)
        if verbose:
            logger.info("Model output", response_id=envelope.id, output=output)

        values = self.interpret(output, mode)
        merged = merge_metadata(values, envelope, model)
        if extra:
            merged.update(extra)

        try:
            result = result_type.model_validate(merged)
        except PydanticValidationError as e:
            output_parse_failures_total.labels(mode="schema").inc()
            error_messages = [
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            logger.warning(
                "Model output does not match result model",
                result_type=result_type.__name__,
                errors=error_messages[:5],
            )
            raise OutputParseFailed(
                f"Failed to parse output from API: {len(error_messages)} invalid field(s)",
                raw_text=output,
                parse_error="; ".join(error_messages),
            ) from e

        logger.debug(
            "Reconciled response",
            result_type=result_type.__name__,
            mode=mode.value,
            response_id=envelope.id,
            tokens=envelope.total_tokens,
        )
        return result

"""Coerce untrusted model text into a typed Signal."""

import json
import re

from aisignal.errors import ParseError
from aisignal.signals.base import (
    CONFIDENCE_VALUES,
    MAX_EXPLANATION_LENGTH,
    SIGNAL_VALUES,
    Signal,
)
from aisignal.signals.fallback import generate_fallback_signal
from aisignal.utils.logger import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON reply."""
    return _CODE_FENCE.sub("", text).strip()


def parse_model_reply(text: str) -> Signal:
    """Parse the model reply.

    Args:
        text: Raw model output

    Returns:
        Signal with normalized value, truncated explanation and confidence

    Raises:
        ParseError: If the reply is not a JSON object with a valid signal
    """
    cleaned = strip_code_fences(text or "")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ParseError("Reply is not a JSON object")

    value = data.get("signal")
    if not isinstance(value, str) or value.strip().lower() not in SIGNAL_VALUES:
        raise ParseError("Invalid signal value")

    explanation = data.get("explanation")
    if explanation is not None and not isinstance(explanation, str):
        raise ParseError("Explanation must be string")

    confidence = data.get("confidence")
    if isinstance(confidence, str) and confidence.strip().lower() in CONFIDENCE_VALUES:
        confidence = confidence.strip().lower()
    else:
        confidence = "medium"

    return Signal(
        signal=value.strip().lower(),
        explanation=explanation[:MAX_EXPLANATION_LENGTH] if explanation else "No explanation",
        confidence=confidence,
        source="model",
    )


def interpret_response(text: str) -> Signal:
    """Interpret model text, falling back to hold on failure.

    Never raises. An unparseable reply always yields hold, whatever the
    indicators say.

    Args:
        text: Raw model output

    Returns:
        Parsed Signal, or the hold fallback
    """
    try:
        return parse_model_reply(text)
    except ParseError as e:
        logger.error(
            "Failed to parse model response",
            error=e.message,
            response=(text or "")[:200],
        )
        return generate_fallback_signal(None)

"""Lenient readers for model output."""

import json
from typing import Any

from ..exceptions import OracleResponseError

_HIGH = ("high", "critical", "major", "severe")
_LOW = ("low", "minor", "trivial")


def normalize_impact(value: Any) -> str:
    """Map free-form impact text onto high | medium | low.

    Matches by keyword containment, so "High impact" or "low-risk" are
    understood. High keywords win over low ones; anything else, including
    explicit medium wording, falls back to ``medium``.
    """
    if not isinstance(value, str):
        return "medium"
    text = value.strip().lower()
    if any(word in text for word in _HIGH):
        return "high"
    if any(word in text for word in _LOW):
        return "low"
    return "medium"


def normalize_callout_type(value: Any) -> str:
    """Map a free-form callout type onto the four known kinds.

    Checked in order: design/decision, pattern/used, performance/insight.
    Everything else is a ``learning``.
    """
    text = str(value or "").strip().lower()
    if "design" in text or "decision" in text:
        return "design-decision"
    if "pattern" in text or "used" in text:
        return "pattern-used"
    if "performance" in text or "insight" in text:
        return "performance-insight"
    return "learning"


def extract_json(text: str) -> dict:
    """Pull the JSON object out of a model reply.

    Tolerates markdown code fences and prose around the object.
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else ""
        if cleaned.rstrip().endswith("```"):
            cleaned = cleaned.rstrip()[:-3]
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise OracleResponseError(f"No JSON object in reply: {text[:200]!r}")
    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Malformed JSON in reply: {e}") from e
    if not isinstance(data, dict):
        raise OracleResponseError("Reply JSON is not an object")
    return data

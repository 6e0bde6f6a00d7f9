"""Deterministic extraction used when the oracle is unavailable."""

import re
from typing import Any

from waypoint.core.constants import FALLBACK_CONFIDENCE, ORACLE_APOLOGY, ContextKey
from waypoint.du.models import InputAnalysis

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def extract_basic_inputs(message: str) -> dict[str, Any]:
    """Email-shaped token becomes ``email``; otherwise non-empty text becomes ``name``."""
    match = EMAIL_PATTERN.search(message)
    if match:
        return {ContextKey.EMAIL.value: match.group(0)}

    text = message.strip()
    if text:
        return {ContextKey.NAME.value: text}
    return {}


def fallback_analysis(
    message: str,
    fallback_node_id: str,
    apology: str = ORACLE_APOLOGY,
) -> InputAnalysis:
    """Minimal analysis that keeps the conversation moving."""
    return InputAnalysis(
        next_node_id=fallback_node_id,
        user_inputs=extract_basic_inputs(message),
        confidence=FALLBACK_CONFIDENCE,
        suggested_response=apology,
    )

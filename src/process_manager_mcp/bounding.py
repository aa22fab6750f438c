"""Output bounding applied to every tool response."""

import logging

from .consts import (
    CHARS_PER_TOKEN,
    MAX_RESPONSE_CHARS,
    MAX_RESPONSE_TOKENS,
    SIZE_WARNING_RATIO,
    TRUNCATION_RESERVE_CHARS,
)

logger = logging.getLogger("process-manager-mcp.bounding")


def estimate_tokens(text: str) -> int:
    """Rough token estimate used for the size warning."""
    return len(text) // CHARS_PER_TOKEN


def _size_warning(text: str) -> str:
    tokens = estimate_tokens(text)
    if tokens <= MAX_RESPONSE_TOKENS * SIZE_WARNING_RATIO:
        return ""
    return (
        f"\n\n[Warning: large response (~{tokens:,} tokens). "
        "Consider a narrower query.]"
    )


def bound_text(text: str) -> str:
    """Bound a text block to the response budget.

    Text whose estimated token count exceeds SIZE_WARNING_RATIO of
    MAX_RESPONSE_TOKENS gets a size warning. Text that would not fit in
    MAX_RESPONSE_CHARS, warning included, is cut and followed by a truncation
    notice. The result, notices included, never exceeds MAX_RESPONSE_CHARS.
    """
    original_length = len(text)
    if original_length + len(_size_warning(text)) > MAX_RESPONSE_CHARS:
        shown = MAX_RESPONSE_CHARS - TRUNCATION_RESERVE_CHARS
        logger.warning(f"Truncating output from {original_length} to {shown} chars")
        text = (
            f"{text[:shown]}\n\n"
            f"[Output truncated: showing {shown:,} of {original_length:,} characters. "
            "Narrow the request or use pagination to see more.]"
        )
    return text + _size_warning(text)


def bound_json(text: str) -> str:
    """Hard cut for structured JSON resources, no notice."""
    return text[:MAX_RESPONSE_CHARS]

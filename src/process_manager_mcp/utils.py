"""Helpers for reading tool arguments and suggesting valid values."""

import logging
from difflib import SequenceMatcher
from typing import Any

from .exceptions import ArgumentError

logger = logging.getLogger("process-manager-mcp.utils")


def suggest_similar_strings(
    target: str,
    candidates: set[str] | list[str],
    threshold: float = 0.6,
    max_results: int = 3,
) -> list[str]:
    """Suggest similar strings using basic similarity scoring.

    Args:
        target: String to match against.
        candidates: Set or list of candidate strings.
        threshold: Minimum similarity threshold (0.0 to 1.0).
        max_results: Maximum number of suggestions to return.

    Returns:
        List of similar strings, sorted by similarity (highest first).
    """
    scored = []
    for candidate in candidates:
        similarity = SequenceMatcher(None, target.lower(), candidate.lower()).ratio()
        if similarity >= threshold:
            scored.append((candidate, similarity))

    scored.sort(key=lambda x: x[1], reverse=True)
    return [s[0] for s in scored[:max_results]]


def require_str(arguments: dict[str, Any], key: str) -> str:
    """Return a required, non-blank string argument, stripped."""
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ArgumentError(
            f"Missing required argument: {key}",
            suggestions=[f"Provide '{key}' as a non-empty string"],
        )
    return value.strip()


def optional_int(arguments: dict[str, Any], key: str, default: int | None) -> int | None:
    """Return an optional integer argument, or the default when absent."""
    value = arguments.get(key)
    if value is None:
        return default
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ArgumentError(f"Argument '{key}' must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise ArgumentError(f"Argument '{key}' must be an integer, got {value!r}")
    return value


def choice(arguments: dict[str, Any], key: str, options: dict[str, Any], default: str):
    """Map a case-insensitive string argument onto a closed set of options.

    Unrecognised names fall back to the default with a logged warning.
    """
    value = arguments.get(key) or default
    if not isinstance(value, str):
        raise ArgumentError(f"Argument '{key}' must be a string, got {value!r}")
    name = value.strip().lower()
    if name not in options:
        similar = suggest_similar_strings(value, list(options))
        hint = f" (did you mean {', '.join(similar)}?)" if similar else ""
        logger.warning(
            f"Unknown {key} {value!r}{hint}; using {default!r}. "
            f"Accepted values: {', '.join(options)}"
        )
        name = default
    return options[name]


def optional_bool(arguments: dict[str, Any], key: str, default: bool) -> bool:
    """Return an optional boolean argument, or the default when absent."""
    value = arguments.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ArgumentError(f"Argument '{key}' must be true or false, got {value!r}")
    return value

"""Naming heuristics for API encapsulation checks.

Every function here is a pure mapping from a name, path or description to a
classification tag so the heuristics can be tuned without touching the
surface analysis itself.
"""

from __future__ import annotations

import re
from typing import Literal

NamingSignal = Literal["implementation-detail", "unstable"]

IMPLEMENTATION_MARKERS = frozenset(
    {"internal", "internals", "impl", "private", "detail", "details", "util", "utils"}
)
UNSTABLE_MARKERS = frozenset(
    {"experimental", "beta", "alpha", "unstable", "temp", "tmp", "draft"}
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
_DOC_TAG = re.compile(r"@(experimental|beta|alpha|unstable)\b", re.IGNORECASE)
_DOC_WORD = re.compile(r"\b(experimental|beta|alpha|unstable)\b", re.IGNORECASE)


def tokenize_identifier(text: str) -> list[str]:
    """Split identifiers and paths into lowercase word tokens.

    Examples:
        >>> tokenize_identifier("parseImpl")
        ['parse', 'impl']
        >>> tokenize_identifier("src/_internal/HTTPClient.ts")
        ['src', 'internal', 'http', 'client', 'ts']
    """
    tokens: list[str] = []
    for chunk in _SEPARATORS.split(text):
        if not chunk:
            continue
        tokens.extend(part.lower() for part in _CAMEL_BOUNDARY.split(chunk) if part)
    return tokens


def classify_name(text: str) -> NamingSignal | None:
    """Classify a member name or file path by its naming markers."""
    tokens = set(tokenize_identifier(text))
    if tokens & IMPLEMENTATION_MARKERS:
        return "implementation-detail"
    if tokens & UNSTABLE_MARKERS:
        return "unstable"
    return None


def is_documented_unstable(description: str | None) -> bool:
    """Return True when a doc comment marks a member experimental or beta."""
    if not description:
        return False
    return bool(_DOC_TAG.search(description) or _DOC_WORD.search(description))


def has_implementation_marker(name: str, path: str) -> bool:
    return (
        classify_name(name) == "implementation-detail"
        or classify_name(path) == "implementation-detail"
    )


def has_unstable_marker(name: str, path: str, description: str | None) -> bool:
    return bool(
        UNSTABLE_MARKERS & set(tokenize_identifier(name))
        or UNSTABLE_MARKERS & set(tokenize_identifier(path))
        or is_documented_unstable(description)
    )


__all__ = [
    "IMPLEMENTATION_MARKERS",
    "UNSTABLE_MARKERS",
    "NamingSignal",
    "classify_name",
    "has_implementation_marker",
    "has_unstable_marker",
    "is_documented_unstable",
    "tokenize_identifier",
]

"""
Argument grammars and sanitizers.

These helpers are applied to caller-supplied arguments before a request
line is built, so malformed input never reaches the wire.
"""

from __future__ import annotations

import re
from typing import Final

TELEPHONE_NUMBER_PATTERN: Final[re.Pattern[str]] = re.compile(r"\+?[0-9]+")
"""Optional leading ``+`` then one or more digits."""

ALLOCATABLE_NUMBER_PATTERN: Final[re.Pattern[str]] = re.compile(r"\+?[0-9_]+")
"""Like a telephone number, but ``_`` may stand in for any digit."""

_WHITESPACE = re.compile(r"[+\s]+")
_NON_NUMERIC = re.compile(r"[^0-9]+")
_NON_CREDENTIAL = re.compile(r"[^a-zA-Z0-9_\-.]")


def is_telephone_number(number: object) -> bool:
    """
    Check whether ``number`` is a telephone number.

    Args:
        number: Candidate value. Anything other than a string is rejected.

    Returns:
        True for ``+441234567890`` or ``01234567890``, False otherwise.
    """
    return isinstance(number, str) and TELEPHONE_NUMBER_PATTERN.fullmatch(number) is not None


def is_allocatable_number(number: object) -> bool:
    """
    Check whether ``number`` is a number or a wildcard range.

    Args:
        number: Candidate value, e.g. ``01234_6_8_0``.

    Returns:
        True if the value matches the allocatable grammar.
    """
    return isinstance(number, str) and ALLOCATABLE_NUMBER_PATTERN.fullmatch(number) is not None


def strip_whitespace(text: str | None) -> str:
    """Remove whitespace and ``+`` characters. Non-strings become ``""``."""
    if not isinstance(text, str):
        return ""
    return _WHITESPACE.sub("", text)


def strip_non_numeric(text: str | None) -> str:
    """Remove every character that is not a digit. Non-strings become ``""``."""
    if not isinstance(text, str):
        return ""
    return _NON_NUMERIC.sub("", text)


def sanitize_credential(text: str | None) -> str:
    """Keep only the characters allowed in ``AUTH`` usernames and passwords."""
    if not isinstance(text, str):
        return ""
    return _NON_CREDENTIAL.sub("", text)

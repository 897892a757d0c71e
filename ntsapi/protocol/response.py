"""
Response line parsing.

A response line has the form ``CODE payload...``. The code is the first
whitespace-delimited token and the payload is every remaining token joined
by single spaces. Internal spacing of the payload is therefore normalized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ntsapi.protocol.constants import ProtocolConstants

_CODE_PATTERN = re.compile(r"0|-?[1-9][0-9]*")
"""Canonical decimal integers only: no sign on zero, no padding."""


@dataclass(frozen=True)
class Response:
    """
    A parsed response line.

    Attributes:
        code: Numeric status code, or None if the first token is missing
            or not a canonical decimal integer.
        payload: Remaining tokens joined by single spaces.
        raw: The line as it was received.
    """

    code: int | None
    payload: str
    raw: str = ""

    @property
    def success(self) -> bool:
        """Check if the server reported success (code 0)."""
        return self.code == ProtocolConstants.SUCCESS_CODE

    @property
    def tokens(self) -> list[str]:
        """Get the payload split into space-separated tokens."""
        return self.payload.split(" ") if self.payload else []

    def __repr__(self) -> str:
        return f"Response(code={self.code}, success={self.success}, payload={self.payload!r})"


def parse_response(line: str) -> Response:
    """
    Parse one protocol line into a :class:`Response`.

    Args:
        line: A complete line as emitted by the line framer.

    Returns:
        Parsed response. A line with no tokens, or whose first token is
        not a canonical decimal integer (``00``, ``+0`` and ``-0`` are
        not), yields ``code=None`` and is treated as a failure.

    Example:
        >>> parse_response("0 OK").success
        True
        >>> parse_response("21   Bad   number").payload
        'Bad number'
    """
    tokens = line.split()
    if not tokens:
        return Response(code=None, payload="", raw=line)

    head, rest = tokens[0], tokens[1:]
    code = int(head) if _CODE_PATTERN.fullmatch(head) else None
    return Response(code=code, payload=" ".join(rest), raw=line)

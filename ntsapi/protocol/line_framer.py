"""
Line framing for the NTS API text stream.

The transport delivers arbitrary chunks of text: one chunk may hold several
responses, and one response may be split over several chunks. This module
rebuilds the newline-delimited protocol lines from that stream.

The core is the pure function :func:`frame_lines`, which maps
``(buffer, chunk)`` to ``(new_buffer, lines)``. :class:`LineFramer` wraps it
with the buffer state owned by a session.

Framing rules:
- The buffered partial line is prefixed to every incoming chunk
- Without a newline, the whole text is buffered and nothing is emitted
- With newlines, every complete segment is emitted in order
- Empty segments (consecutive newlines) are discarded
- If the chunk did not end with a newline, the trailing segment is kept
  as the new partial line
"""

from __future__ import annotations

import logging

from ntsapi.protocol.constants import ProtocolConstants

logger = logging.getLogger(__name__)


def frame_lines(buffer: str, chunk: str) -> tuple[str, list[str]]:
    """
    Split a chunk of stream text into complete lines.

    Args:
        buffer: Partial line left over from the previous chunk.
        chunk: Newly received text.

    Returns:
        Tuple of (new_buffer, lines) where lines are the complete lines
        recovered, without terminators, in arrival order.

    Example:
        >>> frame_lines("", "0 OK\\n21 Bad")
        ('21 Bad', ['0 OK'])
        >>> frame_lines("21 Bad", " number\\n")
        ('', ['21 Bad number'])
    """
    terminator = ProtocolConstants.LINE_TERMINATOR
    is_complete = chunk.endswith(terminator)
    data = buffer + chunk

    if terminator not in data:
        # No complete line yet, just more of a partial one
        return data, []

    segments = data.split(terminator)
    last_index = len(segments) - 1
    new_buffer = ""
    lines: list[str] = []

    for index, segment in enumerate(segments):
        if not segment:
            continue
        if index == last_index and not is_complete:
            new_buffer = segment
        else:
            lines.append(segment)

    return new_buffer, lines


class LineFramer:
    """
    Stateful line accumulator.

    Holds the partial-line buffer between chunks and delegates the actual
    splitting to :func:`frame_lines`.

    Example:
        >>> framer = LineFramer()
        >>> framer.feed("0 441234")
        []
        >>> framer.feed("567890\\n21 end\\n")
        ['0 441234567890', '21 end']
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def buffer(self) -> str:
        """Get the currently buffered partial line."""
        return self._buffer

    @property
    def has_partial(self) -> bool:
        """Check if a partial line is waiting for its terminator."""
        return bool(self._buffer)

    def feed(self, chunk: str) -> list[str]:
        """
        Consume a chunk and return the lines it completes.

        Args:
            chunk: Text received from the transport.

        Returns:
            Complete lines in arrival order (possibly empty).
        """
        self._buffer, lines = frame_lines(self._buffer, chunk)
        for line in lines:
            logger.debug("Received: %s", line)
        return lines

    def reset(self) -> None:
        """Discard any buffered partial line."""
        if self._buffer:
            logger.debug("Discarding partial line: %r", self._buffer)
        self._buffer = ""

    def __repr__(self) -> str:
        return f"LineFramer(buffer={self._buffer!r})"

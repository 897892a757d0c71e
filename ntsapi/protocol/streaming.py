"""
Available-numbers streaming query.

``ALIST range size`` is the one interaction that breaks the
one-command/one-response pattern. The server answers with any number of
success lines, each carrying one available number, and finishes with a
single line that is *not* a success.

That terminator means two different things:
- after at least one number it is just the end of the stream
- with nothing before it, it is the failure reply and its payload is the
  error message

Each line is classified into a :class:`StreamOutcome` so the two meanings
never share the generic success/failure shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto

from ntsapi.protocol.constants import Verb
from ntsapi.protocol.correlator import PendingCommand
from ntsapi.protocol.response import Response, parse_response

logger = logging.getLogger(__name__)


class StreamOutcome(Enum):
    """Classification of one line in a streaming query."""

    ITEM = auto()
    """Success line carrying one available number."""

    END_OF_STREAM = auto()
    """Non-success line after at least one item; ends the stream."""

    ERROR = auto()
    """Non-success line with no items before it; the query failed."""


def classify(response: Response, items_seen: int) -> StreamOutcome:
    """
    Classify a response line within a streaming query.

    Args:
        response: Parsed response line.
        items_seen: Number of items accumulated before this line.

    Returns:
        The tagged outcome for this line.
    """
    if response.success:
        return StreamOutcome.ITEM
    if items_seen:
        return StreamOutcome.END_OF_STREAM
    return StreamOutcome.ERROR


@dataclass(frozen=True)
class StreamResult:
    """
    Final result of a streaming query.

    Attributes:
        outcome: END_OF_STREAM on success, ERROR on failure.
        items: Accumulated payloads, in arrival order.
        terminator: The line that ended the stream.
    """

    outcome: StreamOutcome
    items: list[str] = field(default_factory=list)
    terminator: Response | None = None

    @property
    def success(self) -> bool:
        """Check if the query produced any items."""
        return self.outcome is StreamOutcome.END_OF_STREAM


class AvailableNumbersCollector:
    """
    Accumulates ``ALIST`` response lines until the terminator.

    The collector is independent of any transport and can be driven with
    plain lines.

    Example:
        >>> collector = AvailableNumbersCollector()
        >>> collector.feed("0 441234567890")
        <StreamOutcome.ITEM: 1>
        >>> collector.feed("21 no more")
        <StreamOutcome.END_OF_STREAM: 2>
        >>> collector.result().items
        ['441234567890']
    """

    def __init__(self) -> None:
        self._items: list[str] = []
        self._terminator: Response | None = None
        self._outcome: StreamOutcome | None = None

    @property
    def items(self) -> list[str]:
        """Get the payloads accumulated so far."""
        return list(self._items)

    @property
    def done(self) -> bool:
        """Check if the terminator has been seen."""
        return self._outcome is not None

    def feed(self, line: str) -> StreamOutcome:
        """
        Consume one line of the stream.

        Args:
            line: Complete response line.

        Returns:
            The outcome of this line.

        Raises:
            RuntimeError: If the stream has already terminated.
        """
        if self._outcome is not None:
            raise RuntimeError("Stream already terminated")

        response = parse_response(line)
        outcome = classify(response, len(self._items))

        if outcome is StreamOutcome.ITEM:
            self._items.append(response.payload)
        else:
            self._terminator = response
            self._outcome = outcome
            logger.debug("Stream ended after %d items (%s)", len(self._items), outcome.name)

        return outcome

    def result(self) -> StreamResult:
        """
        Get the final result.

        Raises:
            RuntimeError: If the terminator has not been seen yet.
        """
        if self._outcome is None:
            raise RuntimeError("Stream has not terminated")
        return StreamResult(
            outcome=self._outcome,
            items=list(self._items),
            terminator=self._terminator,
        )


class AvailableNumbersQuery(PendingCommand):
    """
    Pending ``ALIST`` command.

    Occupies the correlator's single pending slot for the whole stream and
    resolves with a :class:`StreamResult`.
    """

    def __init__(self, range_prefix: str, size: int) -> None:
        super().__init__(f"{Verb.AVAILABLE} {range_prefix} {size}")
        self.collector = AvailableNumbersCollector()

    def accept(self, line: str) -> bool:
        outcome = self.collector.feed(line)
        if outcome is StreamOutcome.ITEM:
            return False
        self.resolve(self.collector.result())
        return True

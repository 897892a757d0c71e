"""
Command/response correlation.

The NTS API has no request identifiers: a response is simply the next line
the server sends. The correlator therefore allows exactly one command in
flight per session. Issuing a second command before the first one has
resolved raises :class:`CommandInProgressError` instead of silently pairing
the wrong response with it.

The single pending slot holds a :class:`PendingCommand`. Ordinary commands
use :class:`PendingResponse`, which resolves on the first line. Multi-line
interactions (``ALIST``) plug their own subclass into the same slot.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from ntsapi.exceptions import CommandInProgressError, NotConnectedError
from ntsapi.protocol.constants import ProtocolConstants, Verb
from ntsapi.protocol.response import Response, parse_response

logger = logging.getLogger(__name__)

Writer = Callable[[bytes], Awaitable[None]]


def describe_command(command: str) -> str:
    """Render a command for logs, masking the ``AUTH`` password."""
    parts = command.split(" ")
    if parts[0] == Verb.AUTH.value and len(parts) > 2:
        return " ".join([parts[0], parts[1], "****"])
    return command


class PendingCommand(ABC):
    """
    A command occupying the correlator's pending slot.

    Subclasses consume response lines through :meth:`accept` and resolve
    the attached future once they have seen enough of them.
    """

    def __init__(self, command: str) -> None:
        self.command = command
        self._future: asyncio.Future[Any] | None = None

    @property
    def future(self) -> asyncio.Future[Any]:
        """Future resolved with the command's result."""
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    @property
    def done(self) -> bool:
        """Check if the command has been resolved."""
        return self._future is not None and self._future.done()

    @abstractmethod
    def accept(self, line: str) -> bool:
        """
        Consume one response line.

        Args:
            line: Complete line emitted by the line framer.

        Returns:
            True once the command is resolved and the slot can be released.
        """
        ...

    def resolve(self, result: Any) -> None:
        """Resolve the command with a result."""
        if not self.future.done():
            self.future.set_result(result)

    def fail(self, exc: BaseException) -> None:
        """Resolve the command with an exception."""
        if not self.future.done():
            self.future.set_exception(exc)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({describe_command(self.command)!r})"


class PendingResponse(PendingCommand):
    """Single-response command, resolved with the next parsed line."""

    def accept(self, line: str) -> bool:
        self.resolve(parse_response(line))
        return True


class CommandCorrelator:
    """
    Pairs each sent command with the response lines that follow it.

    The correlator writes command text verbatim (no terminator is appended)
    and arms its single pending slot when a response is expected. The
    owning session feeds every framed line to :meth:`feed`.

    Example:
        >>> correlator = CommandCorrelator(transport.write, lambda: True)
        >>> response = await correlator.send("STAT 441234567890")
        >>> response.success
        True
    """

    def __init__(
        self,
        write: Writer,
        is_connected: Callable[[], bool],
        encoding: str = ProtocolConstants.ENCODING,
    ) -> None:
        """
        Initialize the correlator.

        Args:
            write: Coroutine function writing raw bytes to the transport.
            is_connected: Callable reporting whether writes are allowed.
            encoding: Text encoding for command lines.
        """
        self._write = write
        self._is_connected = is_connected
        self._encoding = encoding
        self._pending: PendingCommand | None = None

    @property
    def pending(self) -> PendingCommand | None:
        """Get the command currently awaiting its response, if any."""
        return self._pending

    @property
    def is_busy(self) -> bool:
        """Check if a command is in flight."""
        return self._pending is not None

    async def send(self, command: str, *, expect_response: bool = True) -> Response | None:
        """
        Send a command and optionally wait for its response.

        Args:
            command: Request line, e.g. ``"ACTI 441234567890"``.
            expect_response: If False, the command is written without arming
                the pending slot and None is returned immediately.

        Returns:
            The response to the command, or None when not expected.

        Raises:
            NotConnectedError: If the session is not connected.
            CommandInProgressError: If another command is still pending.
            TransportError: If the write fails.
            ConnectionError: If the connection closes before a response.
        """
        if not expect_response:
            self._ensure_connected()
            logger.debug("Sending: %s", describe_command(command))
            await self._write(command.encode(self._encoding))
            return None

        return await self.submit(PendingResponse(command))

    async def submit(self, pending: PendingCommand) -> Any:
        """
        Arm the pending slot with ``pending``, write its command, and wait.

        Args:
            pending: Command object that will consume the response lines.

        Returns:
            Whatever ``pending`` resolves with.

        Raises:
            NotConnectedError: If the session is not connected.
            CommandInProgressError: If another command is still pending.
        """
        self._ensure_connected()
        if self._pending is not None:
            raise CommandInProgressError(describe_command(self._pending.command))

        future = pending.future
        self._pending = pending
        try:
            logger.debug("Sending: %s", describe_command(pending.command))
            await self._write(pending.command.encode(self._encoding))
            return await future
        finally:
            if self._pending is pending:
                self._pending = None

    def feed(self, line: str) -> bool:
        """
        Hand a received line to the pending command.

        Args:
            line: Complete line from the line framer.

        Returns:
            True if a pending command consumed the line.
        """
        pending = self._pending
        if pending is None or pending.done:
            logger.debug("Unsolicited line: %s", line)
            return False

        if pending.accept(line):
            self._pending = None
        return True

    def fail_pending(self, exc: BaseException) -> None:
        """Fail the pending command, if any, and release the slot."""
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.done:
            logger.debug("Failing pending command %r: %s", pending, exc)
            pending.fail(exc)

    def _ensure_connected(self) -> None:
        """Verify the owning session is connected."""
        if not self._is_connected():
            raise NotConnectedError()

    def __repr__(self) -> str:
        return f"CommandCorrelator(pending={self._pending!r})"

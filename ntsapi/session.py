"""
NTS API session.

This module provides the main client interface for provisioning telephone
numbers over the NTS API.

The session owns one connection and implements a small state machine:
    DISCONNECTED -> connect() -> CONNECTING -> CONNECTED
    CONNECTED -> disconnect() -> DISCONNECTING -> DISCONNECTED
    CONNECTED -> (peer closes / transport error) -> DISCONNECTED

A background reader task drives the line framer and hands every line to
the command correlator. Only one command may be in flight at a time; the
protocol has no request identifiers, so a second concurrent command is
rejected with CommandInProgressError rather than risk pairing it with the
wrong response. There is no per-command timeout and no automatic
reconnect or retry.

Example:
    >>> from ntsapi import Session
    >>>
    >>> async def main():
    ...     async with Session() as session:
    ...         await session.auth("user", "secret")
    ...         result = await session.status("441234567890")
    ...         print(result.value.activated)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from ntsapi.config import SessionConfig
from ntsapi.exceptions import (
    ConnectionError,
    InvalidArgumentError,
    TransportError,
    UnsupportedOperationError,
)
from ntsapi.models.destination import Destination
from ntsapi.models.records import (
    CipherInfo,
    CommandResult,
    ConnectionInfo,
    Endpoint,
    NumberStatus,
)
from ntsapi.protocol.constants import ProtocolConstants, Verb
from ntsapi.protocol.correlator import CommandCorrelator
from ntsapi.protocol.line_framer import LineFramer
from ntsapi.protocol.streaming import AvailableNumbersQuery, StreamResult
from ntsapi.validators import is_allocatable_number, is_telephone_number, sanitize_credential

if TYPE_CHECKING:
    from ntsapi.protocol.response import Response
    from ntsapi.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class SessionState(Enum):
    """Session connection states."""

    DISCONNECTED = auto()
    """No connection."""

    CONNECTING = auto()
    """Transport is being opened."""

    CONNECTED = auto()
    """Connected and ready for commands."""

    DISCONNECTING = auto()
    """QUIT sent, waiting for the connection to close."""


class SessionEvent(Enum):
    """
    Notifications published by a session.

    Listener signatures:
    - CONNECTED: ``listener()``
    - LINE: ``listener(line: str)``
    - CLOSED: ``listener()``
    - ERROR: ``listener(error: Exception)``
    """

    CONNECTED = auto()
    LINE = auto()
    CLOSED = auto()
    ERROR = auto()


class Session:
    """
    Client session for the NTS API.

    Provides the provisioning operations (allocate, activate, deactivate,
    reactivate, set destination, status, list available numbers) on top of
    one connection.

    Argument errors are raised immediately as InvalidArgumentError, before
    anything is sent. Failures reported by the server are returned as a
    CommandResult with ``success=False`` and the server's text as
    ``message``.

    Attributes:
        state: Current connection state.
        config: Connection settings.
        transport: The transport in use (None before the first connect
            when no transport was injected).

    Example:
        >>> session = Session(SessionConfig(secure=True))
        >>> await session.connect()
        >>> result = await session.allocate("0123456____")
        >>> if result.success:
        ...     await session.activate(result.value)
        >>> await session.disconnect()
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        transport: AbstractTransport | None = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            config: Connection settings (defaults to the TLS endpoint).
            transport: Transport to use instead of building a TcpTransport
                from ``config``.
        """
        self._config = config or SessionConfig()
        self._transport = transport
        self._state = SessionState.DISCONNECTED
        self._framer = LineFramer()
        self._correlator = CommandCorrelator(
            self._write,
            lambda: self._state == SessionState.CONNECTED,
            encoding=self._config.encoding,
        )
        self._reader_task: asyncio.Task[None] | None = None
        self._listeners: dict[SessionEvent, list[Listener]] = {event: [] for event in SessionEvent}

    @classmethod
    async def open(cls, config: SessionConfig | None = None) -> Session:
        """Create a session and connect it using the given settings."""
        session = cls(config)
        await session.connect()
        return session

    @property
    def state(self) -> SessionState:
        """Get the current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the session is connected."""
        return self._state == SessionState.CONNECTED

    @property
    def secure(self) -> bool:
        """Check if the session is configured for TLS."""
        return self._config.secure

    @property
    def config(self) -> SessionConfig:
        """Get the connection settings."""
        return self._config

    @property
    def transport(self) -> AbstractTransport | None:
        """Get the underlying transport."""
        return self._transport

    # ===== Events =====

    def on(self, event: SessionEvent, listener: Listener) -> None:
        """Register a listener for a session event."""
        self._listeners[event].append(listener)

    def off(self, event: SessionEvent, listener: Listener) -> None:
        """Remove a previously registered listener. Unknown listeners are ignored."""
        try:
            self._listeners[event].remove(listener)
        except ValueError:
            pass

    def _emit(self, event: SessionEvent, *args: Any) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener %r for %s failed", listener, event.name)

    # ===== Lifecycle =====

    async def connect(self) -> bool:
        """
        Connect to the API endpoint.

        Opens the transport, sends an empty probe write to announce the
        client, and starts the background reader.

        Returns:
            True if a connection was established, False if the session was
            already connected or connecting (no attempt was made).

        Raises:
            ConnectionError: If the transport cannot be opened.
        """
        if self._state != SessionState.DISCONNECTED:
            logger.debug("Connect ignored: session is %s", self._state.name)
            return False

        if self._transport is None:
            self._transport = self._config.create_transport()
        transport = self._transport

        self._state = SessionState.CONNECTING
        logger.info("Connecting to %s", transport.endpoint)

        try:
            await transport.open()
            # Tell the far end we're here
            await transport.write(b"")
        except TransportError as e:
            await self._abort_connect(transport)
            logger.error("Connection to %s failed: %s", transport.endpoint, e)
            self._emit(SessionEvent.ERROR, e)
            raise ConnectionError(f"Failed to connect to {transport.endpoint}: {e}") from e
        except BaseException:
            # Cancellation or any unexpected error
            await self._abort_connect(transport)
            raise

        self._framer.reset()
        self._state = SessionState.CONNECTED
        self._reader_task = asyncio.create_task(self._read_loop(transport))
        logger.info(
            "Connected to %s (%s)",
            transport.endpoint,
            "secure" if transport.encrypted else "insecure",
        )
        self._emit(SessionEvent.CONNECTED)
        return True

    async def _abort_connect(self, transport: AbstractTransport) -> None:
        self._state = SessionState.DISCONNECTED
        if transport.is_open:
            try:
                await transport.close()
            except TransportError as e:
                logger.debug("Error while closing %s: %s", transport.endpoint, e)

    async def disconnect(self) -> bool:
        """
        Disconnect from the API endpoint.

        Sends ``QUIT`` without waiting for its response, then gives the
        server ``config.disconnect_grace`` seconds to close the connection
        before closing it locally.

        Returns:
            True if a disconnect was performed, False if not connected.
        """
        if self._state != SessionState.CONNECTED:
            return False

        transport = self._transport
        reader = self._reader_task

        try:
            await self._correlator.send(Verb.QUIT.value, expect_response=False)
        except TransportError as e:
            logger.debug("QUIT could not be sent: %s", e)

        self._state = SessionState.DISCONNECTING
        grace = self._config.disconnect_grace

        if reader is not None:
            done, _ = await asyncio.wait({reader}, timeout=grace)
            if not done:
                logger.warning("Server did not close within %.1fs, closing connection", grace)
                await transport.close()
                await reader
        elif transport is not None and transport.is_open:
            await transport.close()

        self._state = SessionState.DISCONNECTED
        return True

    async def _read_loop(self, transport: AbstractTransport) -> None:
        """
        Background reader: frames incoming text and dispatches lines.

        Runs until end of stream or a transport error, then resets the
        session to DISCONNECTED and publishes CLOSED.
        """
        error: TransportError | None = None
        try:
            while True:
                chunk = await transport.read(ProtocolConstants.READ_CHUNK_SIZE)
                if not chunk:
                    break
                text = chunk.decode(self._config.encoding, errors="replace")
                for line in self._framer.feed(text):
                    self._dispatch(line)
        except TransportError as e:
            error = e
            logger.error("Transport error on %s: %s", transport.endpoint, e)

        if transport.is_open:
            await transport.close()
        self._handle_closed(error)

    def _dispatch(self, line: str) -> None:
        self._correlator.feed(line)
        self._emit(SessionEvent.LINE, line)

    def _handle_closed(self, error: Exception | None) -> None:
        self._state = SessionState.DISCONNECTED
        self._reader_task = None
        self._framer.reset()
        self._correlator.fail_pending(
            ConnectionError("Connection closed before a response was received")
        )
        logger.info("Socket closed")
        if error is not None:
            self._emit(SessionEvent.ERROR, error)
        self._emit(SessionEvent.CLOSED)

    async def _write(self, data: bytes) -> None:
        if self._transport is None:
            raise TransportError("No transport")
        await self._transport.write(data)

    def connection_info(self) -> ConnectionInfo:
        """
        Get a snapshot of the current connection.

        Returns:
            Connection details. Only ``connected`` and ``encrypted`` are
            set when the session is not connected.
        """
        transport = self._transport
        encrypted = transport is not None and transport.encrypted
        if not self.is_connected or transport is None:
            return ConnectionInfo(connected=False, encrypted=encrypted)

        local = Endpoint.from_sockname(transport.extra_info("sockname"))
        remote = Endpoint.from_sockname(transport.extra_info("peername"))
        if not encrypted:
            return ConnectionInfo(connected=True, encrypted=False, local=local, remote=remote)

        authorized = transport.verified
        ssl_object = transport.extra_info("ssl_object")
        cipher = transport.extra_info("cipher")

        return ConnectionInfo(
            connected=True,
            encrypted=True,
            local=local,
            remote=remote,
            certificate=transport.extra_info("peercert"),
            authorized=authorized,
            authorization_error=None if authorized else "Certificate verification disabled",
            protocol=ssl_object.version() if ssl_object is not None else None,
            cipher=CipherInfo(name=cipher[0], version=cipher[1], bits=cipher[2]) if cipher else None,
        )

    # ===== Commands =====

    async def command(self, action: str) -> Response:
        """
        Send a raw command line and wait for its response.

        Args:
            action: Complete request line.

        Returns:
            The parsed response.

        Raises:
            NotConnectedError: If not connected.
            CommandInProgressError: If another command is pending.
        """
        return await self._correlator.send(action)

    async def auth(self, username: str, password: str) -> CommandResult[bool]:
        """
        Authenticate the session.

        Characters other than letters, digits, ``_``, ``-`` and ``.`` are
        removed from both credentials.

        Returns:
            Result whose value is True on success.

        Raises:
            InvalidArgumentError: If the username is empty after sanitizing.
        """
        user = sanitize_credential(username)
        secret = sanitize_credential(password)
        if not user:
            raise InvalidArgumentError("Username is required", argument="username")

        response = await self._correlator.send(f"{Verb.AUTH} {user} {secret}")
        if response.success:
            logger.info("Authenticated as %s", user)
        else:
            logger.info("Authentication as %s failed: %s", user, response.payload)
        return CommandResult.from_response(response, value=True)

    async def allocate(self, number: str) -> CommandResult[str]:
        """
        Allocate a telephone number.

        Args:
            number: A number, or a range with ``_`` wildcards.

        Returns:
            Result whose value is the allocated number.

        Raises:
            InvalidArgumentError: If ``number`` is not allocatable.
        """
        _require_allocatable(number)
        response = await self._correlator.send(f"{Verb.ALLOCATE} {number}")
        allocated = response.tokens[0] if response.tokens else ""
        return CommandResult.from_response(response, value=allocated)

    async def activate(self, number: str) -> CommandResult[str]:
        """
        Activate an allocated number.

        Raises:
            InvalidArgumentError: If ``number`` is not a telephone number.
        """
        return await self._simple(Verb.ACTIVATE, number)

    async def deactivate(self, number: str) -> CommandResult[str]:
        """
        Deactivate a number.

        Raises:
            InvalidArgumentError: If ``number`` is not a telephone number.
        """
        return await self._simple(Verb.DEACTIVATE, number)

    async def reactivate(self, number: str) -> CommandResult[str]:
        """
        Reactivate a deactivated number.

        Raises:
            InvalidArgumentError: If ``number`` is not a telephone number.
        """
        return await self._simple(Verb.REACTIVATE, number)

    async def _simple(self, verb: Verb, number: str) -> CommandResult[str]:
        _require_telephone(number)
        response = await self._correlator.send(f"{verb} {number}")
        return CommandResult.from_response(response, value=response.payload)

    async def destination(
        self,
        number: str,
        priority: int | str,
        destination: Destination | str,
    ) -> CommandResult[str]:
        """
        Set the destination for one priority slot of a number.

        Args:
            number: Telephone number.
            priority: Priority slot, starting at 1.
            destination: Destination object or its wire string.

        Returns:
            Result whose value is the server's payload.

        Raises:
            InvalidArgumentError: If the number or priority is malformed,
                or the destination cannot be encoded.
        """
        _require_telephone(number)

        try:
            slot = int(priority)
        except (TypeError, ValueError):
            raise InvalidArgumentError("Invalid priority", argument=str(priority)) from None
        if slot < 1:
            raise InvalidArgumentError("Priority must be 1 or greater", argument=str(priority))

        if isinstance(destination, str):
            destination = Destination.decode(destination)
        if not isinstance(destination, Destination):
            raise InvalidArgumentError("Destination must be a Destination object")

        encoded = destination.encode()
        if not encoded:
            raise InvalidArgumentError("Destination is incomplete", argument=repr(destination))

        response = await self._correlator.send(f"{Verb.SET} {number} {slot} {encoded}")
        return CommandResult.from_response(response, value=response.payload)

    async def status(self, number: str) -> CommandResult[NumberStatus]:
        """
        Get the status of a number.

        Returns:
            Result whose value is the parsed NumberStatus.

        Raises:
            InvalidArgumentError: If ``number`` is not a telephone number.
            ParseError: If a success payload is malformed.
        """
        _require_telephone(number)
        response = await self._correlator.send(f"{Verb.STATUS} {number}")
        if not response.success:
            return CommandResult.from_response(response)
        return CommandResult.from_response(response, value=NumberStatus.from_payload(response.payload))

    async def available_numbers(self, range_prefix: str, size: int | str) -> CommandResult[list[str]]:
        """
        List available numbers in a range.

        The server streams one success line per number and ends with a
        non-success line. If any numbers were received, that last line only
        marks the end of the list; otherwise it is the failure reply.

        Args:
            range_prefix: Number range with ``_`` wildcards.
            size: Block size, 1 or greater.

        Returns:
            Result whose value is the list of numbers, in server order.

        Raises:
            InvalidArgumentError: If the range or size is malformed.
        """
        _require_allocatable(range_prefix)
        try:
            block = int(size)
        except (TypeError, ValueError):
            raise InvalidArgumentError("Invalid size", argument=str(size)) from None
        if block < 1:
            raise InvalidArgumentError("Size must be 1 or greater", argument=str(size))

        result: StreamResult = await self._correlator.submit(AvailableNumbersQuery(range_prefix, block))
        if result.success:
            return CommandResult(
                success=True,
                code=ProtocolConstants.SUCCESS_CODE,
                value=result.items,
            )
        terminator = result.terminator
        return CommandResult(
            success=False,
            code=terminator.code if terminator else None,
            message=terminator.payload if terminator else "",
        )

    # ===== Unimplemented operations =====

    def pin(self, number: str, pin: str) -> None:
        """Set the voicemail PIN of a number. Not implemented."""
        raise UnsupportedOperationError("pin")

    def feature(self, account: str, name: str, state: bool) -> None:
        """Enable or disable an account feature. Not implemented."""
        raise UnsupportedOperationError("feature")

    def order(self, number: str, index: int, periods: Any) -> None:
        """Schedule destination changes. Not implemented."""
        raise UnsupportedOperationError("order")

    def info(self, address: Any) -> None:
        """Set emergency-service address information. Not implemented."""
        raise UnsupportedOperationError("info")

    # ===== Context manager =====

    async def __aenter__(self) -> Session:
        """Async context manager entry - connects the session."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - disconnects the session."""
        await self.disconnect()

    def __repr__(self) -> str:
        endpoint = self._transport.endpoint if self._transport else self._config.target
        return f"Session(state={self._state.name}, endpoint={endpoint})"


def _require_telephone(number: str) -> None:
    if not is_telephone_number(number):
        raise InvalidArgumentError("Invalid number format", argument=str(number))


def _require_allocatable(number: str) -> None:
    if not is_allocatable_number(number):
        raise InvalidArgumentError("Invalid number format", argument=str(number))

"""
Exception hierarchy for ntsapi.

All exceptions inherit from NTSAPIError, providing a clean hierarchy
for error handling. The design follows these principles:

1. Argument errors are raised before anything touches the wire
2. Connection errors are distinct from protocol misuse
3. Server-reported failures carry the original response code
4. Transport errors are never retried by the library
"""

from __future__ import annotations


class NTSAPIError(Exception):
    """
    Base exception for all ntsapi errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all ntsapi errors with a single except clause.
    """

    pass


class InvalidArgumentError(NTSAPIError, ValueError):
    """
    Malformed argument passed to a provisioning operation.

    Raised synchronously, before any network activity, when a number,
    range, priority or destination does not match its grammar.
    """

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument

    def __str__(self) -> str:
        base = super().__str__()
        if self.argument is not None:
            return f"{base} (argument={self.argument!r})"
        return base


class ConnectionError(NTSAPIError):  # noqa: A001 - intentionally shadows builtin
    """
    Session connection error.

    Raised when:
    - The connection to the API endpoint cannot be established
    - The connection is lost while a command is awaiting its response
    """

    pass


class NotConnectedError(ConnectionError):
    """
    A command was issued while the session is not connected.

    Nothing is written to the transport when this is raised.
    """

    def __init__(self, message: str = "Socket is not connected") -> None:
        super().__init__(message)


class TransportError(NTSAPIError):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Socket errors
    - TLS handshake failures
    - I/O on a closed transport
    """

    pass


class ProtocolError(NTSAPIError):
    """
    Protocol-level error.

    Raised when the protocol is violated or misused by the caller.
    """

    pass


class CommandInProgressError(ProtocolError):
    """
    A command was issued while another one is still awaiting its response.

    The protocol carries no request identifiers, so only one command may be
    in flight per session.
    """

    def __init__(self, pending: str) -> None:
        super().__init__(f"Command already in progress: {pending}")
        self.pending = pending


class ParseError(ProtocolError):
    """
    Response payload parsing error.

    Raised when a successful response carries a payload that does not have
    the expected shape.
    """

    def __init__(
        self,
        message: str,
        *,
        verb: str | None = None,
        raw_data: str | None = None,
    ) -> None:
        super().__init__(message)
        self.verb = verb
        self.raw_data = raw_data

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.verb:
            parts.append(f"verb={self.verb}")
        if self.raw_data:
            # Truncate raw data for display
            display_data = self.raw_data[:40] + "..." if len(self.raw_data) > 40 else self.raw_data
            parts.append(f"data={display_data}")
        return " ".join(parts) if len(parts) > 1 else parts[0]


class CommandError(NTSAPIError):
    """
    Failure response from the server.

    The protocol has no structured error codes beyond "non-zero", so the
    raw payload text is kept as the message.
    """

    def __init__(self, code: int | None, message: str) -> None:
        self.code = code
        self.message = message
        shown = "?" if code is None else str(code)
        super().__init__(f"Command failed with code {shown}: {message}")


class UnsupportedOperationError(NTSAPIError, NotImplementedError):
    """Operation is not implemented for this protocol version."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} is not implemented")
        self.operation = operation

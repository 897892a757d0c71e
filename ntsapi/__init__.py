"""
ntsapi - Python client for the Magrathea NTS provisioning API.

This library provides an async session for the NTS API text protocol:
allocating, activating and deactivating telephone numbers, setting their
call-forwarding destinations, querying their status and listing available
numbers, over a plain or TLS-secured connection.

Example:
    >>> from ntsapi import Session, Destination, DestinationType
    >>>
    >>> async def main():
    ...     async with Session() as session:
    ...         await session.auth("user", "secret")
    ...         sip = Destination(type=DestinationType.SIP, username="bob", host="sip.example.com")
    ...         await session.destination("441234567890", 1, sip)
"""

from ntsapi.config import SessionConfig
from ntsapi.exceptions import (
    CommandError,
    CommandInProgressError,
    ConnectionError,
    InvalidArgumentError,
    NotConnectedError,
    NTSAPIError,
    ParseError,
    ProtocolError,
    TransportError,
    UnsupportedOperationError,
)
from ntsapi.models.destination import Destination, DestinationType, parse_destination
from ntsapi.models.records import CommandResult, ConnectionInfo, NumberStatus
from ntsapi.protocol.response import Response, parse_response
from ntsapi.session import Session, SessionEvent, SessionState
from ntsapi.transport import AbstractTransport, TcpTransport

__version__ = "0.1.0"
__all__ = [
    # Session
    "Session",
    "SessionConfig",
    "SessionEvent",
    "SessionState",
    # Models
    "Destination",
    "DestinationType",
    "parse_destination",
    "CommandResult",
    "ConnectionInfo",
    "NumberStatus",
    "Response",
    "parse_response",
    # Exceptions
    "NTSAPIError",
    "InvalidArgumentError",
    "ConnectionError",
    "NotConnectedError",
    "TransportError",
    "ProtocolError",
    "CommandInProgressError",
    "ParseError",
    "CommandError",
    "UnsupportedOperationError",
    # Transport
    "AbstractTransport",
    "TcpTransport",
    # Version
    "__version__",
]

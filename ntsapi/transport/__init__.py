"""
Transport layer for NTS API communication.

This package provides transport implementations carrying the session's
byte stream.

Available transports:
- TcpTransport: asyncio TCP streams, optionally TLS-secured
- MockTransport: Mock transport for testing without a network

Example:
    >>> from ntsapi.transport import TcpTransport, create_ssl_context
    >>> transport = TcpTransport("secure.magrathea-telecom.co.uk", ssl_context=create_ssl_context())

Testing Example:
    >>> from ntsapi.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.add_response(b"0 OK\\n")
"""

from ntsapi.transport.abc import AbstractTransport
from ntsapi.transport.mock import MockTransport, ScriptedMockTransport
from ntsapi.transport.tcp import TcpTransport, create_ssl_context

__all__ = [
    "AbstractTransport",
    "TcpTransport",
    "create_ssl_context",
    "MockTransport",
    "ScriptedMockTransport",
]

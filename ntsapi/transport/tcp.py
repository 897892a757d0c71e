"""
TCP/TLS transport using asyncio streams.

This module provides the primary transport implementation for talking to
the NTS API endpoint. The same port (777) serves both the plain and the
TLS endpoint; which one is used depends on the host name and on whether
an SSL context is supplied.

Example:
    >>> transport = TcpTransport("secure.magrathea-telecom.co.uk", ssl_context=create_ssl_context())
    >>> async with transport:
    ...     await transport.write(b"STAT 441234567890")
    ...     chunk = await transport.read()
"""

from __future__ import annotations

import asyncio
import logging
import socket
import ssl
from typing import Any

from ntsapi.exceptions import TransportError
from ntsapi.protocol.constants import ProtocolConstants
from ntsapi.transport.abc import AbstractTransport

logger = logging.getLogger(__name__)


def create_ssl_context(verify: bool = True) -> ssl.SSLContext:
    """
    Create the client SSL context.

    Args:
        verify: Verify the server certificate and host name. Disable only
            for testing against a private endpoint.

    Returns:
        Configured client context.
    """
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    if not verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class TcpTransport(AbstractTransport):
    """
    Async TCP transport, optionally TLS-secured.

    TCP keep-alive is enabled on the socket so that an idle session is not
    dropped by intermediate firewalls.

    Attributes:
        endpoint: ``host:port`` string.
        is_open: Whether the connection is currently open.
        encrypted: Whether an SSL context is in use.
    """

    def __init__(
        self,
        host: str,
        port: int = ProtocolConstants.DEFAULT_PORT,
        ssl_context: ssl.SSLContext | None = None,
        keepalive: int | None = ProtocolConstants.KEEPALIVE_INTERVAL,
    ) -> None:
        """
        Initialize the TCP transport.

        Args:
            host: Server host name.
            port: Server port (default: 777).
            ssl_context: SSL context for a TLS connection, None for plain TCP.
            keepalive: Keep-alive idle time in seconds, None to disable.
        """
        self._host = host
        self._port = port
        self._ssl_context = ssl_context
        self._keepalive = keepalive
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @property
    def is_open(self) -> bool:
        """Check if the connection is currently open."""
        return (
            self._writer is not None
            and not self._writer.is_closing()
            and self._reader is not None
        )

    @property
    def endpoint(self) -> str:
        """Get the ``host:port`` string."""
        return f"{self._host}:{self._port}"

    @property
    def encrypted(self) -> bool:
        """Check if the connection uses TLS."""
        return self._ssl_context is not None

    @property
    def verified(self) -> bool:
        """Check if the server certificate is verified."""
        return (
            self._ssl_context is not None
            and self._ssl_context.verify_mode == ssl.CERT_REQUIRED
        )

    async def open(self) -> None:
        """
        Open the connection and complete the TLS handshake if configured.

        Raises:
            TransportError: If the connection cannot be established.
        """
        if self.is_open:
            return

        try:
            self._reader, self._writer = await asyncio.open_connection(
                self._host,
                self._port,
                ssl=self._ssl_context,
                server_hostname=self._host if self._ssl_context else None,
            )
        except ssl.SSLError as e:
            raise TransportError(f"TLS handshake with {self.endpoint} failed: {e}") from e
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.endpoint}: {e}") from e
        except ValueError as e:
            # Includes UnicodeError from IDNA encoding of the host name
            raise TransportError(f"Invalid address {self.endpoint}: {e}") from e

        self._enable_keepalive()
        logger.debug("Socket open to %s (%s)", self.endpoint, "secure" if self.encrypted else "insecure")
        if self.encrypted:
            cert = self._writer.get_extra_info("peercert") or {}
            logger.debug("Peer certificate serial: %s", cert.get("serialNumber"))

    def _enable_keepalive(self) -> None:
        sock = self._writer.get_extra_info("socket") if self._writer else None
        if sock is None or self._keepalive is None:
            return
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
            if hasattr(socket, "TCP_KEEPIDLE"):
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, self._keepalive)
        except OSError as e:
            logger.debug("Could not enable keep-alive: %s", e)

    async def close(self) -> None:
        """
        Close the connection.

        Safely closes the connection and releases resources. Safe to call
        multiple times.
        """
        if self._writer is not None:
            try:
                self._writer.close()
                await self._writer.wait_closed()
            except (OSError, ssl.SSLError) as e:
                # The peer may already have dropped the connection
                logger.debug("Error while closing %s: %s", self.endpoint, e)

        self._writer = None
        self._reader = None

    async def write(self, data: bytes) -> None:
        """
        Write data to the connection.

        Args:
            data: Bytes to transmit.

        Raises:
            TransportError: If the connection is not open or write fails.
        """
        if not self.is_open:
            raise TransportError("Connection is not open")

        try:
            self._writer.write(data)
            await self._writer.drain()
        except (OSError, ssl.SSLError) as e:
            raise TransportError(f"Write failed: {e}") from e

    async def read(self, max_bytes: int = ProtocolConstants.READ_CHUNK_SIZE) -> bytes:
        """
        Read the next chunk from the connection.

        Args:
            max_bytes: Upper bound on the chunk size.

        Returns:
            Received bytes, ``b""`` once the connection has closed.

        Raises:
            TransportError: If the read fails.
        """
        reader = self._reader
        if reader is None:
            return b""

        try:
            return await reader.read(max_bytes)
        except (OSError, ssl.SSLError) as e:
            raise TransportError(f"Read failed: {e}") from e

    def extra_info(self, name: str, default: Any = None) -> Any:
        """Get a connection detail from the underlying asyncio transport."""
        if self._writer is None:
            return default
        return self._writer.get_extra_info(name, default)

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        mode = "tls" if self.encrypted else "plain"
        return f"TcpTransport({self.endpoint!r}, {mode}, {status})"

"""
Abstract transport interface for NTS API communication.

This module defines the abstract base class for all transport implementations.
Transports handle the byte stream between the session and the API endpoint.

The transport layer is responsible for:
- Opening/closing the connection (plain TCP or TLS)
- Reading and writing raw bytes
- Exposing connection details (addresses, certificate, cipher)

Framing, correlation and protocol semantics live above this layer.

Implementations:
- TcpTransport: asyncio streams, optionally TLS-secured
- MockTransport: For testing without a network
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for NTS API transports.

    Transports provide async read/write operations over one stream
    connection. All transport implementations must inherit from this class
    and implement all abstract methods.

    Transports support async context manager protocol for safe resource
    management:

        async with TcpTransport("api.example.net", 777) as transport:
            await transport.write(b"STAT 441234567890")
            chunk = await transport.read()

    Attributes:
        is_open: Whether the transport connection is currently open.
        endpoint: Identifier for the transport (e.g., "host:port").
        encrypted: Whether the connection is TLS-secured.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Endpoint string (e.g., "secure.magrathea-telecom.co.uk:777").
        """
        ...

    @property
    def encrypted(self) -> bool:
        """Check if the transport is TLS-secured."""
        return False

    @property
    def verified(self) -> bool:
        """Check if the peer certificate was verified during the handshake."""
        return False

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Releases the connection and any associated resources. Safe to call
        multiple times (idempotent). A read pending on the transport returns
        end-of-stream once the connection is closed.
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the transport.

        Args:
            data: Bytes to send. May be empty.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    async def read(self, max_bytes: int = 4096) -> bytes:
        """
        Read the next chunk of data from the transport.

        Waits until at least one byte is available. There is no timeout:
        the protocol allows the server to take as long as it needs.

        Args:
            max_bytes: Upper bound on the chunk size.

        Returns:
            The bytes received, or ``b""`` at end of stream.

        Raises:
            TransportError: If the transport is not open or read fails.
        """
        ...

    def extra_info(self, name: str, default: Any = None) -> Any:
        """
        Get optional connection details.

        Uses the asyncio ``get_extra_info`` keys: ``sockname``,
        ``peername``, ``peercert``, ``cipher``, ``ssl_object``.

        Args:
            name: Detail name.
            default: Value returned when the detail is unavailable.
        """
        return default

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()

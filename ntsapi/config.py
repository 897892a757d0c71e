"""
Session configuration.

Defaults come from :class:`~ntsapi.protocol.constants.ProtocolConstants`.
The target host follows the ``secure`` flag unless one is given
explicitly: the TLS endpoint and the plain endpoint have different names
but share port 777.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ntsapi.protocol.constants import ProtocolConstants
from ntsapi.transport.tcp import TcpTransport, create_ssl_context


class SessionConfig(BaseModel):
    """
    Connection settings for a :class:`~ntsapi.session.Session`.

    Attributes:
        secure: Use the TLS endpoint.
        host: Override the endpoint host name.
        port: Endpoint port.
        verify: Verify the server certificate (TLS only).
        disconnect_grace: Seconds to wait for the server to close after
            ``QUIT`` before the connection is closed locally.
        encoding: Text encoding of the wire protocol.

    Example:
        >>> SessionConfig().target
        'secure.magrathea-telecom.co.uk:777'
        >>> SessionConfig(secure=False).target
        'api.magrathea-telecom.co.uk:777'
    """

    model_config = ConfigDict(frozen=True)

    secure: bool = True
    host: str | None = None
    port: int = Field(default=ProtocolConstants.DEFAULT_PORT, ge=1, le=65535)
    verify: bool = True
    disconnect_grace: float = Field(default=ProtocolConstants.DISCONNECT_GRACE, ge=0)
    encoding: str = ProtocolConstants.ENCODING

    @property
    def resolved_host(self) -> str:
        """Get the host to connect to."""
        if self.host:
            return self.host
        return ProtocolConstants.SECURE_HOST if self.secure else ProtocolConstants.PLAIN_HOST

    @property
    def target(self) -> str:
        """Get ``host:port`` for display."""
        return f"{self.resolved_host}:{self.port}"

    def create_transport(self) -> TcpTransport:
        """Build a TCP transport for these settings."""
        ssl_context = create_ssl_context(self.verify) if self.secure else None
        return TcpTransport(self.resolved_host, self.port, ssl_context=ssl_context)

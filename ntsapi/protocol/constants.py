"""
NTS API protocol verbs and constants.

The API is a line-oriented text protocol: requests are single lines of the
form ``VERB ARG1 [ARG2 ...]`` and responses are newline-terminated lines of
the form ``CODE payload...`` where ``CODE`` is 0 for success.
"""

from __future__ import annotations

from enum import Enum
from typing import Final


class Verb(str, Enum):
    """
    Request verbs understood by the provisioning endpoint.

    Each verb is the fixed prefix of a request line.
    """

    AUTH = "AUTH"
    """Authenticate: ``AUTH user pass``."""

    ALLOCATE = "ALLO"
    """Allocate a number or a number from a range: ``ALLO number``."""

    ACTIVATE = "ACTI"
    """Activate an allocated number: ``ACTI number``."""

    DEACTIVATE = "DEAC"
    """Deactivate a number: ``DEAC number``."""

    REACTIVATE = "REAC"
    """Reactivate a deactivated number: ``REAC number``."""

    SET = "SET"
    """Set a destination: ``SET number priority destination``."""

    STATUS = "STAT"
    """Query number status: ``STAT number``."""

    AVAILABLE = "ALIST"
    """List available numbers in a range: ``ALIST range size``."""

    QUIT = "QUIT"
    """End the session."""

    def __str__(self) -> str:
        return self.value


class ProtocolConstants:
    """
    NTS API protocol constants.

    Contains endpoint addresses, timing values and text framing details used
    throughout the protocol implementation.
    """

    # ===== Endpoints =====

    DEFAULT_PORT: Final[int] = 777
    """TCP port for both the plain and the TLS endpoint."""

    SECURE_HOST: Final[str] = "secure.magrathea-telecom.co.uk"
    """TLS endpoint host name."""

    PLAIN_HOST: Final[str] = "api.magrathea-telecom.co.uk"
    """Plain-text endpoint host name."""

    # ===== Timing Constants (in seconds) =====

    DISCONNECT_GRACE: Final[float] = 0.5
    """Time to wait for the peer to close after QUIT before forcing it."""

    KEEPALIVE_INTERVAL: Final[int] = 10
    """TCP keep-alive idle time in seconds."""

    # ===== Framing =====

    LINE_TERMINATOR: Final[str] = "\n"
    """Response line terminator."""

    ENCODING: Final[str] = "ascii"
    """Text encoding of the wire protocol."""

    READ_CHUNK_SIZE: Final[int] = 4096
    """Maximum number of bytes requested per transport read."""

    SUCCESS_CODE: Final[int] = 0
    """Response code signalling success. Every other code is a failure."""

    # ===== Expected response shapes =====

    STATUS_FIELD_COUNT: Final[int] = 4
    """Number of space-separated fields in a ``STAT`` success payload."""

    DESTINATION_SEPARATOR: Final[str] = "|"
    """Separator between destination slots in a ``STAT`` payload."""

    ACTIVATED_FLAG: Final[str] = "Y"
    """``STAT`` flag value meaning the number is activated."""

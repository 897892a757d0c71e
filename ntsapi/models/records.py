"""
Pydantic models for operation results and session snapshots.

Design principles:
- All models are frozen (immutable)
- Results keep the raw response payload alongside the interpreted value
- A failed command is data, not an exception; ``raise_for_status()`` turns
  it into one when the caller prefers that style
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ntsapi.exceptions import CommandError, ParseError
from ntsapi.models.destination import Destination
from ntsapi.protocol.constants import ProtocolConstants, Verb

if TYPE_CHECKING:
    from ntsapi.protocol.response import Response

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CommandResult(BaseModel, Generic[T]):
    """
    Outcome of a provisioning operation.

    Attributes:
        success: True if the server answered with code 0.
        code: Response code, None if the line carried no numeric code.
        message: Raw response payload (the error detail on failure).
        value: Operation-specific result, None on failure.

    Example:
        >>> result = await session.status("441234567890")
        >>> if result.success:
        ...     print(result.value.activated)
        ... else:
        ...     print(result.message)
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    code: int | None = None
    message: str = ""
    value: T | None = None

    @classmethod
    def from_response(cls, response: Response, value: Any = None) -> CommandResult[Any]:
        """
        Build a result from a parsed response.

        Args:
            response: The parsed response line.
            value: Value to attach when the response is a success.

        Returns:
            Result mirroring the response.
        """
        return cls(
            success=response.success,
            code=response.code,
            message=response.payload,
            value=value if response.success else None,
        )

    def raise_for_status(self) -> None:
        """
        Raise CommandError if the command failed.

        Raises:
            CommandError: If ``success`` is False.
        """
        if not self.success:
            raise CommandError(self.code, self.message)


class NumberStatus(BaseModel):
    """
    Status of a provisioned telephone number.

    Attributes:
        number: Number the status refers to, as echoed by the server.
        activated: Whether the number is active.
        expiry: Expiry timestamp, None if the server's value did not parse.
        expiry_raw: Expiry timestamp exactly as sent.
        destinations: Destinations by priority slot; index 0 is priority 1.
            Empty slots are None.
    """

    model_config = ConfigDict(frozen=True)

    number: str
    activated: bool
    expiry: datetime | None = None
    expiry_raw: str = ""
    destinations: list[Destination | None] = Field(default_factory=list)

    @property
    def active_destinations(self) -> list[tuple[int, Destination]]:
        """Get ``(priority, destination)`` pairs for occupied slots."""
        return [(i + 1, dest) for i, dest in enumerate(self.destinations) if dest is not None]

    @classmethod
    def from_payload(cls, payload: str) -> NumberStatus:
        """
        Parse a ``STAT`` success payload.

        Format: ``<number> Y|N <expiry> <dest1|dest2|...>``. The destination
        field may be missing when no slot is configured.

        Args:
            payload: Response payload (code already removed).

        Returns:
            Parsed status.

        Raises:
            ParseError: If fewer than three fields are present.
        """
        fields = payload.split(" ")
        if len(fields) < ProtocolConstants.STATUS_FIELD_COUNT - 1:
            raise ParseError(
                f"Expected at least {ProtocolConstants.STATUS_FIELD_COUNT - 1} fields, got {len(fields)}",
                verb=Verb.STATUS.value,
                raw_data=payload,
            )

        number, flag, expiry_raw = fields[0], fields[1], fields[2]
        slots = fields[3] if len(fields) > 3 else ""

        try:
            expiry: datetime | None = datetime.fromisoformat(expiry_raw)
        except ValueError:
            logger.debug("Unparseable expiry timestamp: %r", expiry_raw)
            expiry = None

        destinations: list[Destination | None] = []
        if slots:
            for slot in slots.split(ProtocolConstants.DESTINATION_SEPARATOR):
                destinations.append(Destination.decode(slot) if slot else None)

        return cls(
            number=number,
            activated=flag == ProtocolConstants.ACTIVATED_FLAG,
            expiry=expiry,
            expiry_raw=expiry_raw,
            destinations=destinations,
        )


class Endpoint(BaseModel):
    """Address and port of one end of the connection."""

    model_config = ConfigDict(frozen=True)

    address: str
    port: int

    @classmethod
    def from_sockname(cls, sockname: Any) -> Endpoint | None:
        """Build from a socket address tuple; None if unavailable."""
        if not sockname or len(sockname) < 2:
            return None
        return cls(address=str(sockname[0]), port=int(sockname[1]))

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


class CipherInfo(BaseModel):
    """Negotiated TLS cipher suite."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    bits: int | None = None


class ConnectionInfo(BaseModel):
    """
    Snapshot of the session's connection.

    When disconnected only ``connected`` and ``encrypted`` are meaningful.
    Address details are filled in when connected, TLS details when the
    connection is also encrypted.
    """

    model_config = ConfigDict(frozen=True)

    connected: bool
    encrypted: bool = False
    local: Endpoint | None = None
    remote: Endpoint | None = None
    certificate: dict[str, Any] | None = None
    authorized: bool | None = None
    authorization_error: str | None = None
    protocol: str | None = None
    cipher: CipherInfo | None = None

"""
Call-forwarding destinations and their wire encoding.

A destination is where a provisioned number forwards its calls. On the wire
it is a compact string:

- Telephone: the bare digits, e.g. ``441234567890``
- Fax / voicemail: ``F:user@host`` / ``V:user@host``
- SIP family: ``T:user[:password]@host`` where ``T`` is ``S`` (SIP),
  ``s`` (SIP with in-band DTMF), ``I`` (IAX) or ``E`` (TLS-secured SIP)

Encoding and decoding are lenient. An incomplete destination encodes to
None, and text in an unrecognized format decodes to a destination with
unset fields rather than raising.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Final

from pydantic import BaseModel, ConfigDict, field_validator

from ntsapi.validators import is_telephone_number, strip_non_numeric, strip_whitespace

logger = logging.getLogger(__name__)


class DestinationType(IntEnum):
    """Destination variants."""

    TELEPHONE = 0
    FAX = 1
    VOICEMAIL = 2
    SIP = 3
    SIP_INBAND_DTMF = 4
    IAX = 5
    TLS = 6


TYPE_TAGS: Final[dict[DestinationType, str]] = {
    DestinationType.FAX: "F",
    DestinationType.VOICEMAIL: "V",
    DestinationType.SIP: "S",
    DestinationType.SIP_INBAND_DTMF: "s",
    DestinationType.IAX: "I",
    DestinationType.TLS: "E",
}
"""One-letter wire tag for each non-telephone variant."""

TAG_TYPES: Final[dict[str, DestinationType]] = {tag: kind for kind, tag in TYPE_TAGS.items()}

_EMAIL_TYPES: Final[frozenset[DestinationType]] = frozenset(
    {DestinationType.FAX, DestinationType.VOICEMAIL}
)


def _split_at(text: str) -> tuple[str, str | None]:
    """Split ``left@right``. Without ``@`` the right side is None."""
    left, sep, right = text.partition("@")
    if not sep:
        return text, None
    return left, right


class Destination(BaseModel):
    """
    A routing target for a telephone number.

    Fields are validated on assignment, so a destination can be built up
    attribute by attribute before use. ``username``, ``password`` and
    ``host`` lose any whitespace and ``+`` characters; ``number`` keeps
    only its digits.

    Example:
        >>> dest = Destination(type=DestinationType.SIP, username="bob", host="sip.example.com")
        >>> dest.encode()
        'S:bob@sip.example.com'
        >>> dest.password = "x"
        >>> str(dest)
        'S:bob:x@sip.example.com'
        >>> Destination.decode("S:bob:x@sip.example.com") == dest
        True
    """

    model_config = ConfigDict(validate_assignment=True)

    type: DestinationType | None = DestinationType.TELEPHONE
    number: str | None = None
    username: str | None = None
    password: str | None = None
    host: str | None = None

    @field_validator("number", mode="before")
    @classmethod
    def _clean_number(cls, value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Must be a string")
        return strip_non_numeric(value)

    @field_validator("username", "password", "host", mode="before")
    @classmethod
    def _clean_text(cls, value: object) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Must be a string")
        return strip_whitespace(value)

    @property
    def email(self) -> str | None:
        """Get ``username@host`` (fax/voicemail address), if both are set."""
        if not self.username or not self.host:
            return None
        return f"{self.username}@{self.host}"

    @property
    def is_complete(self) -> bool:
        """Check if the destination has every field its variant requires."""
        return self.encode() is not None

    def encode(self) -> str | None:
        """
        Encode the destination to its wire representation.

        Returns:
            The wire string, or None if the type is unset or a
            non-telephone destination lacks its username or host.
        """
        if self.type is DestinationType.TELEPHONE:
            return self.number

        if self.type is None or not self.username or not self.host:
            return None

        tag = TYPE_TAGS[self.type]
        if self.type in _EMAIL_TYPES:
            return f"{tag}:{self.email}"

        credentials = self.username
        if self.password:
            credentials += f":{self.password}"
        return f"{tag}:{credentials}@{self.host}"

    @classmethod
    def decode(cls, text: str) -> Destination:
        """
        Decode a destination from its wire representation.

        Args:
            text: Wire string, e.g. ``S:bob:x@sip.example.com``.

        Returns:
            The decoded destination. Text that is neither a telephone
            number nor 2-3 colon-separated segments yields a destination
            with every field unset. An unknown type tag leaves ``type``
            unset.
        """
        if is_telephone_number(text):
            return cls(type=DestinationType.TELEPHONE, number=text)

        segments = text.split(":")
        if len(segments) not in (2, 3):
            logger.debug("Unrecognized destination format: %r", text)
            return cls(type=None)

        dest_type = TAG_TYPES.get(segments[0])
        if dest_type is None:
            logger.debug("Unrecognized destination tag: %r", segments[0])

        if len(segments) == 3:
            username: str | None = segments[1]
            password, host = _split_at(segments[2])
        else:
            username, host = _split_at(segments[1])
            password = None

        return cls(type=dest_type, username=username, password=password, host=host)

    def __str__(self) -> str:
        return self.encode() or ""


def parse_destination(text: str) -> Destination:
    """Decode a destination. Convenience alias for :meth:`Destination.decode`."""
    return Destination.decode(text)

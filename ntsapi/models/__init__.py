"""
Data models for the NTS API.

This module contains Pydantic models representing:

- Destinations (call-forwarding targets) and their wire encoding
- Operation results
- Number status records
- Connection snapshots
"""

from ntsapi.models.destination import Destination, DestinationType, parse_destination
from ntsapi.models.records import (
    CipherInfo,
    CommandResult,
    ConnectionInfo,
    Endpoint,
    NumberStatus,
)

__all__ = [
    # Destinations
    "Destination",
    "DestinationType",
    "parse_destination",
    # Records
    "CommandResult",
    "NumberStatus",
    "ConnectionInfo",
    "Endpoint",
    "CipherInfo",
]

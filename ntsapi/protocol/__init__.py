"""
Protocol layer for NTS API communication.

This module contains the transport-independent protocol handling:
- Verbs and protocol constants
- Line framing of the incoming text stream
- Response line parsing
- Command/response correlation
- The multi-line available-numbers query
"""

from ntsapi.protocol.constants import ProtocolConstants, Verb
from ntsapi.protocol.correlator import (
    CommandCorrelator,
    PendingCommand,
    PendingResponse,
    describe_command,
)
from ntsapi.protocol.line_framer import LineFramer, frame_lines
from ntsapi.protocol.response import Response, parse_response
from ntsapi.protocol.streaming import (
    AvailableNumbersCollector,
    AvailableNumbersQuery,
    StreamOutcome,
    StreamResult,
    classify,
)

__all__ = [
    # Constants
    "Verb",
    "ProtocolConstants",
    # Framing
    "LineFramer",
    "frame_lines",
    # Responses
    "Response",
    "parse_response",
    # Correlation
    "CommandCorrelator",
    "PendingCommand",
    "PendingResponse",
    "describe_command",
    # Streaming
    "AvailableNumbersCollector",
    "AvailableNumbersQuery",
    "StreamOutcome",
    "StreamResult",
    "classify",
]

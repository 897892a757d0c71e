"""
Mock transport for testing.

This module provides a mock transport implementation that allows testing
the session without a network. Response chunks can be pre-queued, pushed
while a test runs, or generated from a callback on every write.

Example:
    >>> from ntsapi.transport import MockTransport
    >>> from ntsapi import Session
    >>>
    >>> mock = MockTransport()
    >>> mock.set_response_callback(lambda data: b"0 OK\\n" if data else None)
    >>>
    >>> async with Session(transport=mock) as session:
    ...     result = await session.activate("441234567890")
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from ntsapi.exceptions import TransportError
from ntsapi.transport.abc import AbstractTransport

_EOF = b""


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without a network.

    Reads are served from a queue of chunks, so tests control exactly how
    the byte stream is fragmented. All written data is recorded for
    verification.

    Attributes:
        written_data: List of all bytes written to the transport.

    Example:
        >>> mock = MockTransport()
        >>> mock.add_response(b"0 OK\\n")
        >>>
        >>> async with mock:
        ...     await mock.write(b"ACTI 441234567890")
        ...     assert await mock.read() == b"0 OK\\n"
        ...     assert mock.written_data == [b"ACTI 441234567890"]
    """

    def __init__(
        self,
        endpoint: str = "mock://test",
        *,
        encrypted: bool = False,
        verified: bool = False,
        extra: dict[str, Any] | None = None,
        open_error: Exception | None = None,
    ) -> None:
        """
        Initialize the mock transport.

        Args:
            endpoint: Identifier for the mock transport.
            encrypted: Value reported by ``encrypted``.
            verified: Value reported by ``verified``.
            extra: Values served by ``extra_info``.
            open_error: Exception raised by ``open`` to simulate a failed
                connection attempt.
        """
        self._endpoint = endpoint
        self._encrypted = encrypted
        self._verified = verified
        self._extra = dict(extra or {})
        self._open_error = open_error
        self._is_open = False
        self._eof = False
        self._chunks: asyncio.Queue[bytes | Exception] = asyncio.Queue()
        self._written_data: list[bytes] = []
        self._response_callback: Callable[[bytes], bytes | None] | None = None

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def endpoint(self) -> str:
        """Get the mock endpoint name."""
        return self._endpoint

    @property
    def encrypted(self) -> bool:
        return self._encrypted

    @property
    def verified(self) -> bool:
        return self._verified

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    def add_response(self, response: bytes | str) -> None:
        """
        Queue a chunk for a later read.

        Chunks are returned in FIFO order, one per read, so a test can split
        or coalesce lines however it likes.

        Args:
            response: Chunk to return (str is ASCII-encoded).
        """
        if isinstance(response, str):
            response = response.encode("ascii")
        if response:
            self._chunks.put_nowait(response)

    def add_responses(self, *responses: bytes | str) -> None:
        """
        Queue multiple chunks.

        Args:
            *responses: Chunks to add, in order.
        """
        for response in responses:
            self.add_response(response)

    def feed_eof(self) -> None:
        """Simulate the peer closing the connection."""
        self._chunks.put_nowait(_EOF)

    def feed_error(self, exc: Exception) -> None:
        """Simulate an abrupt transport failure on the next read."""
        self._chunks.put_nowait(exc)

    def set_response_callback(
        self,
        callback: Callable[[bytes], bytes | None] | None,
    ) -> None:
        """
        Set a callback to dynamically generate responses.

        The callback receives the written data and returns the chunk to
        queue, or None to queue nothing.

        Args:
            callback: Function that takes written bytes and returns response.
        """
        self._response_callback = callback

    def clear(self) -> None:
        """Clear all written data and pending chunks."""
        self._written_data.clear()
        while not self._chunks.empty():
            self._chunks.get_nowait()

    def clear_written(self) -> None:
        """Clear only the written data history."""
        self._written_data.clear()

    async def open(self) -> None:
        """Open the mock transport."""
        if self._is_open:
            raise TransportError("Mock transport already open")
        if self._open_error is not None:
            raise self._open_error
        self._is_open = True
        self._eof = False

    async def close(self) -> None:
        """Close the mock transport and end any pending read."""
        if self._is_open:
            self._is_open = False
            self.feed_eof()

    async def write(self, data: bytes) -> None:
        """
        Write data to the mock transport.

        Records the written data and optionally triggers response callback.

        Args:
            data: Bytes to write.

        Raises:
            TransportError: If transport is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        self._written_data.append(bytes(data))

        if self._response_callback:
            response = self._response_callback(bytes(data))
            if response is not None:
                self.add_response(response)

    async def read(self, max_bytes: int = 4096) -> bytes:
        """
        Return the next queued chunk, waiting for one if necessary.

        Chunks longer than ``max_bytes`` are split and the rest is kept for
        the next read.

        Raises:
            TransportError: If a simulated failure was queued.
        """
        if self._eof:
            return _EOF

        chunk = await self._chunks.get()
        if isinstance(chunk, Exception):
            self._is_open = False
            self._eof = True
            raise chunk
        if chunk == _EOF:
            self._is_open = False
            self._eof = True
            return _EOF

        if len(chunk) > max_bytes:
            rest = chunk[max_bytes:]
            chunk = chunk[:max_bytes]
            self._requeue_front(rest)
        return chunk

    def _requeue_front(self, chunk: bytes) -> None:
        pending = [chunk]
        while not self._chunks.empty():
            pending.append(self._chunks.get_nowait())
        for item in pending:
            self._chunks.put_nowait(item)

    def extra_info(self, name: str, default: Any = None) -> Any:
        """Serve connection details from the ``extra`` mapping."""
        if not self._is_open:
            return default
        return self._extra.get(name, default)

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Args:
            expected: Expected number of writes.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")


class ScriptedMockTransport(MockTransport):
    """
    Mock transport with scripted request/response pairs.

    Each non-empty write consumes the next script step; the step's response
    is queued for reading and, if requested, the connection is closed after
    it. The empty connect probe does not consume a step.

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(request=b"ACTI 441234567890", response=b"0 OK\\n")
        >>> mock.expect(request=b"QUIT", response=b"0 Bye\\n", close=True)
    """

    def __init__(self, endpoint: str = "mock://scripted", **kwargs: Any) -> None:
        super().__init__(endpoint, **kwargs)
        self._script: list[tuple[bytes | None, bytes, bool]] = []
        self._script_index = 0

    def expect(
        self,
        response: bytes | str,
        request: bytes | str | None = None,
        *,
        close: bool = False,
    ) -> None:
        """
        Add an expected request/response pair.

        Args:
            response: Response chunk to queue (may be empty).
            request: Expected request (None to match any).
            close: Close the connection after the response.
        """
        if isinstance(response, str):
            response = response.encode("ascii")
        if isinstance(request, str):
            request = request.encode("ascii")
        self._script.append((request, response, close))

    @property
    def script_complete(self) -> bool:
        """Check if every scripted step has been consumed."""
        return self._script_index >= len(self._script)

    async def write(self, data: bytes) -> None:
        """Write with script validation."""
        if not self._is_open:
            raise TransportError("Mock transport not open")

        self._written_data.append(bytes(data))
        if not data:
            return

        if self._script_index < len(self._script):
            expected_request, response, close = self._script[self._script_index]

            if expected_request is not None and data != expected_request:
                raise AssertionError(
                    f"Script mismatch at step {self._script_index}: "
                    f"expected {expected_request!r}, got {data!r}"
                )

            self._script_index += 1
            self.add_response(response)
            if close:
                self.feed_eof()

    def reset_script(self) -> None:
        """Reset script to beginning."""
        self._script_index = 0

    def clear_script(self) -> None:
        """Clear all scripted expectations."""
        self._script.clear()
        self._script_index = 0

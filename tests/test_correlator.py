"""Tests for command/response correlation."""

import asyncio

import pytest

from ntsapi.exceptions import CommandInProgressError, ConnectionError, NotConnectedError
from ntsapi.protocol.correlator import CommandCorrelator, PendingResponse, describe_command


class FakeWire:
    """Records writes and reports a switchable connection state."""

    def __init__(self):
        self.writes = []
        self.connected = True

    async def write(self, data):
        self.writes.append(data)

    def is_connected(self):
        return self.connected


@pytest.fixture
def wire():
    return FakeWire()


@pytest.fixture
def correlator(wire):
    return CommandCorrelator(wire.write, wire.is_connected)


class TestCommandCorrelator:
    """Tests for CommandCorrelator."""

    @pytest.mark.asyncio
    async def test_response_resolves_pending_command(self, correlator, wire):
        """Test the next line resolves the pending command."""
        task = asyncio.create_task(correlator.send("STAT 441234567890"))
        await asyncio.sleep(0)

        assert wire.writes == [b"STAT 441234567890"]
        assert correlator.is_busy
        assert correlator.feed("0 441234567890 Y 2025-01-01") is True

        response = await task
        assert response.success
        assert response.payload == "441234567890 Y 2025-01-01"
        assert not correlator.is_busy

    @pytest.mark.asyncio
    async def test_command_written_verbatim(self, correlator, wire):
        """Test no terminator is appended to the command."""
        task = asyncio.create_task(correlator.send("ACTI 441234567890"))
        await asyncio.sleep(0)
        correlator.feed("0 OK")
        await task
        assert wire.writes == [b"ACTI 441234567890"]

    @pytest.mark.asyncio
    async def test_not_connected_writes_nothing(self, correlator, wire):
        """Test sending while disconnected fails without writing."""
        wire.connected = False
        with pytest.raises(NotConnectedError, match="Socket is not connected"):
            await correlator.send("STAT 441234567890")
        assert wire.writes == []
        assert not correlator.is_busy

    @pytest.mark.asyncio
    async def test_second_command_rejected_while_pending(self, correlator, wire):
        """Test a concurrent command fails fast and is not written."""
        first = asyncio.create_task(correlator.send("ACTI 441234567890"))
        await asyncio.sleep(0)

        with pytest.raises(CommandInProgressError) as exc_info:
            await correlator.send("DEAC 441234567890")
        assert exc_info.value.pending == "ACTI 441234567890"
        assert wire.writes == [b"ACTI 441234567890"]

        correlator.feed("0 OK")
        assert (await first).success

    @pytest.mark.asyncio
    async def test_commands_in_sequence(self, correlator, wire):
        """Test the slot is reusable after each response."""
        for command, line in [("ACTI 1", "0 OK"), ("DEAC 1", "21 Not active")]:
            task = asyncio.create_task(correlator.send(command))
            await asyncio.sleep(0)
            correlator.feed(line)
            await task
        assert wire.writes == [b"ACTI 1", b"DEAC 1"]

    @pytest.mark.asyncio
    async def test_fail_pending(self, correlator):
        """Test failing the pending command releases the slot."""
        task = asyncio.create_task(correlator.send("STAT 441234567890"))
        await asyncio.sleep(0)

        correlator.fail_pending(ConnectionError("closed"))
        with pytest.raises(ConnectionError, match="closed"):
            await task
        assert not correlator.is_busy

    def test_fail_pending_without_pending(self, correlator):
        correlator.fail_pending(ConnectionError("closed"))
        assert correlator.pending is None

    def test_unsolicited_line(self, correlator):
        """Test a line with nothing pending is not consumed."""
        assert correlator.feed("0 hello") is False

    @pytest.mark.asyncio
    async def test_cancelled_command_releases_slot(self, correlator):
        task = asyncio.create_task(correlator.send("STAT 441234567890"))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not correlator.is_busy

    @pytest.mark.asyncio
    async def test_fire_and_forget(self, correlator, wire):
        """Test expect_response=False writes without arming the slot."""
        assert await correlator.send("QUIT", expect_response=False) is None
        assert wire.writes == [b"QUIT"]
        assert not correlator.is_busy

    @pytest.mark.asyncio
    async def test_fire_and_forget_requires_connection(self, correlator, wire):
        wire.connected = False
        with pytest.raises(NotConnectedError):
            await correlator.send("QUIT", expect_response=False)
        assert wire.writes == []

    @pytest.mark.asyncio
    async def test_submit_custom_pending(self, correlator):
        pending = PendingResponse("STAT 1")
        task = asyncio.create_task(correlator.submit(pending))
        await asyncio.sleep(0)
        assert correlator.pending is pending
        correlator.feed("0 OK")
        assert (await task).payload == "OK"
        assert pending.done


class TestDescribeCommand:
    """Tests for log rendering of commands."""

    def test_auth_password_masked(self):
        assert describe_command("AUTH bob secret") == "AUTH bob ****"

    def test_other_commands_unchanged(self):
        assert describe_command("STAT 441234567890") == "STAT 441234567890"

    def test_auth_without_password(self):
        assert describe_command("AUTH bob") == "AUTH bob"

    def test_repr_masks_password(self):
        assert "secret" not in repr(PendingResponse("AUTH bob secret"))

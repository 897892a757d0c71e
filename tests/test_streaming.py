"""Tests for the available-numbers streaming query."""

import asyncio

import pytest

from ntsapi.protocol.correlator import CommandCorrelator
from ntsapi.protocol.response import parse_response
from ntsapi.protocol.streaming import (
    AvailableNumbersCollector,
    AvailableNumbersQuery,
    StreamOutcome,
    classify,
)


class TestClassify:
    """Tests for classify."""

    def test_success_is_item(self):
        assert classify(parse_response("0 441234567890"), 0) is StreamOutcome.ITEM
        assert classify(parse_response("0 441234567890"), 5) is StreamOutcome.ITEM

    def test_failure_after_items_ends_stream(self):
        assert classify(parse_response("21 no more"), 1) is StreamOutcome.END_OF_STREAM

    def test_failure_first_is_error(self):
        assert classify(parse_response("21 Bad range"), 0) is StreamOutcome.ERROR

    def test_unparseable_line_terminates(self):
        assert classify(parse_response("441234567890"), 0) is StreamOutcome.ERROR


class TestAvailableNumbersCollector:
    """Tests for AvailableNumbersCollector."""

    def test_items_then_terminator(self):
        collector = AvailableNumbersCollector()
        assert collector.feed("0 441234567890") is StreamOutcome.ITEM
        assert collector.feed("0 441234567891") is StreamOutcome.ITEM
        assert not collector.done
        assert collector.feed("21 whatever") is StreamOutcome.END_OF_STREAM
        assert collector.done

        result = collector.result()
        assert result.success is True
        assert result.items == ["441234567890", "441234567891"]
        assert result.terminator.code == 21

    def test_immediate_failure(self):
        collector = AvailableNumbersCollector()
        assert collector.feed("21 Bad range") is StreamOutcome.ERROR

        result = collector.result()
        assert result.success is False
        assert result.items == []
        assert result.terminator.payload == "Bad range"

    def test_feed_after_termination_raises(self):
        collector = AvailableNumbersCollector()
        collector.feed("21 Bad range")
        with pytest.raises(RuntimeError):
            collector.feed("0 441234567890")

    def test_result_before_termination_raises(self):
        collector = AvailableNumbersCollector()
        collector.feed("0 441234567890")
        with pytest.raises(RuntimeError):
            collector.result()

    def test_items_is_a_copy(self):
        collector = AvailableNumbersCollector()
        collector.feed("0 441234567890")
        collector.items.append("x")
        assert collector.items == ["441234567890"]


class TestAvailableNumbersQuery:
    """Tests for AvailableNumbersQuery in the correlator slot."""

    def test_command_text(self):
        assert AvailableNumbersQuery("01234______", 10).command == "ALIST 01234______ 10"

    @pytest.mark.asyncio
    async def test_holds_slot_until_terminator(self):
        writes = []

        async def write(data):
            writes.append(data)

        correlator = CommandCorrelator(write, lambda: True)
        task = asyncio.create_task(correlator.submit(AvailableNumbersQuery("4412345678__", 2)))
        await asyncio.sleep(0)

        assert writes == [b"ALIST 4412345678__ 2"]
        assert correlator.feed("0 441234567890") is True
        assert correlator.is_busy
        assert correlator.feed("0 441234567891") is True
        assert correlator.is_busy
        assert correlator.feed("21 end") is True
        assert not correlator.is_busy

        result = await task
        assert result.outcome is StreamOutcome.END_OF_STREAM
        assert result.items == ["441234567890", "441234567891"]

"""
Tests for the pull-based stream iterator.
"""

import pytest
from structlog.testing import capture_logs

from llm_streams.openai import decode_response_event, stream_response_events
from llm_streams.streaming import StreamingParser, strip_data_prefix


async def lines_from(lines):
    for line in lines:
        yield line


class RecordingSource:
    """Line source that records how many lines have been pulled."""

    def __init__(self, lines, error: Exception | None = None):
        self.lines = list(lines)
        self.error = error
        self.pulled = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.pulled < len(self.lines):
            line = self.lines[self.pulled]
            self.pulled += 1
            return line
        if self.error is not None:
            raise self.error
        raise StopAsyncIteration


DELTA_A = 'data: {"type":"response.output_text.delta","delta":"a"}'
COMPLETED_R1 = 'data: {"type":"response.completed","response":{"id":"r1"}}'


class TestStreamResponseEvents:
    """Iteration over Responses API lines."""

    @pytest.mark.asyncio
    async def test_yields_decoded_events_in_order(self):
        lines = ["", DELTA_A, "not-data", COMPLETED_R1]

        events = [event async for event in stream_response_events(lines_from(lines))]

        assert [event.type for event in events] == [
            "response.output_text.delta",
            "response.completed",
        ]
        assert events[0].text_delta == "a"
        assert events[1].completed_response_id == "r1"

    @pytest.mark.asyncio
    async def test_empty_source_ends_immediately(self):
        events = [event async for event in stream_response_events(lines_from([]))]

        assert events == []

    @pytest.mark.asyncio
    async def test_malformed_frames_do_not_stop_the_stream(self):
        lines = [
            DELTA_A,
            "data: {oops",
            "data: [DONE]",
            ": keep-alive",
            "   ",
            COMPLETED_R1,
        ]

        with capture_logs() as logs:
            events = [event async for event in stream_response_events(lines_from(lines))]

        assert len(events) == 2
        warnings = [log for log in logs if log["log_level"] == "warning"]
        assert [log["line"] for log in warnings] == ["data: {oops", "data: [DONE]"]

    @pytest.mark.asyncio
    async def test_provider_failures_are_ordinary_events(self):
        lines = [
            DELTA_A,
            'data: {"type":"error","message":"rate limited"}',
            'data: {"type":"response.failed","response":{"error":{"message":"boom"}}}',
        ]

        events = [event async for event in stream_response_events(lines_from(lines))]

        assert [event.is_failed for event in events] == [False, True, True]
        assert [event.error for event in events] == [None, "rate limited", "boom"]


class TestStreamingParser:
    """Generic parser behaviour."""

    @pytest.mark.asyncio
    async def test_source_errors_propagate(self):
        source = RecordingSource([DELTA_A], error=ConnectionError("connection reset"))
        parser = StreamingParser(decode_response_event)
        received = []

        with pytest.raises(ConnectionError, match="connection reset"):
            async for event in parser.parse_lines(source):
                received.append(event)

        assert [event.text_delta for event in received] == ["a"]

    @pytest.mark.asyncio
    async def test_pulls_one_line_at_a_time(self):
        source = RecordingSource(["", DELTA_A, COMPLETED_R1, DELTA_A])
        parser = StreamingParser(decode_response_event)
        events = parser.parse_lines(source)

        first = await anext(events)
        assert first.text_delta == "a"
        assert source.pulled == 2

        second = await anext(events)
        assert second.is_completed
        assert source.pulled == 3

        await events.aclose()
        assert source.pulled == 3

    @pytest.mark.asyncio
    async def test_decoder_only_sees_data_lines(self):
        seen = []

        def decoder(line):
            seen.append(line)
            return strip_data_prefix(line)

        parser = StreamingParser(decoder)
        lines = ["", "event: message", "data: one", "\t", "data: two"]

        results = [item async for item in parser.parse_lines(lines_from(lines))]

        assert seen == ["data: one", "data: two"]
        assert results == ["one", "two"]

    @pytest.mark.asyncio
    async def test_noise_lines_logged_at_debug(self):
        parser = StreamingParser(decode_response_event, provider="openai")

        with capture_logs() as logs:
            results = [e async for e in parser.parse_lines(lines_from([": ping"]))]

        assert results == []
        assert len(logs) == 1
        assert logs[0]["log_level"] == "debug"
        assert logs[0]["provider"] == "openai"

    @pytest.mark.asyncio
    async def test_stats(self):
        parser = StreamingParser(decode_response_event)
        lines = ["", DELTA_A, "not-data", "data: {bad", COMPLETED_R1]

        _ = [event async for event in parser.parse_lines(lines_from(lines))]

        assert parser.get_stats() == {
            "total_lines": 5,
            "blank_lines": 1,
            "noise_lines": 1,
            "decoded_events": 2,
            "decode_failures": 1,
        }

        parser.reset_stats()
        assert parser.get_stats()["total_lines"] == 0

    @pytest.mark.asyncio
    async def test_get_stats_returns_copy(self):
        parser = StreamingParser(decode_response_event)
        stats = parser.get_stats()
        stats["total_lines"] = 99

        assert parser.get_stats()["total_lines"] == 0

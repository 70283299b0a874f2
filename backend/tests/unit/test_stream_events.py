"""
Unit tests for stream event parsing and line splitting.
"""

import pytest

from chatwidget.models.stream_events import (
    AnswerEvent,
    ErrorEvent,
    HeartbeatEvent,
    parse_stream_event,
)
from chatwidget.services.stream_consumer import StreamLineBuffer


class TestParseStreamEvent:
    @pytest.mark.parametrize("tag", ["heartbeat", "ping_disconnect"])
    def test_heartbeat(self, tag):
        assert parse_stream_event({"event": tag}) == HeartbeatEvent(tag=tag)

    def test_heartbeat_wins_over_answer(self):
        event = parse_stream_event({"event": "heartbeat", "answer": "hidden"})
        assert isinstance(event, HeartbeatEvent)

    def test_error_wins_over_answer(self):
        event = parse_stream_event({"error": "quota", "answer": "partial"})
        assert event == ErrorEvent(error="quota")

    def test_answer_with_session_id(self):
        event = parse_stream_event({"answer": "Bonjour", "session_id": "backend-1"})
        assert event == AnswerEvent(answer="Bonjour", session_id="backend-1")

    def test_answer_without_session_id(self):
        event = parse_stream_event({"answer": "Bonjour"})
        assert isinstance(event, AnswerEvent)
        assert event.session_id is None

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"answer": ""},
            {"error": ""},
            {"event": "other"},
            {"answer": 42},
            ["answer"],
            "answer",
            None,
        ],
    )
    def test_unrecognised_payloads(self, payload):
        assert parse_stream_event(payload) is None


class TestStreamLineBuffer:
    def test_complete_lines(self):
        buffer = StreamLineBuffer()
        assert buffer.feed(b"data: a\ndata: b\n") == ["data: a", "data: b"]
        assert buffer.flush() == ""

    def test_partial_line_kept_until_completed(self):
        buffer = StreamLineBuffer()
        assert buffer.feed(b'data: {"ans') == []
        assert buffer.feed(b'wer": "x"}\n') == ['data: {"answer": "x"}']

    def test_crlf_is_stripped(self):
        buffer = StreamLineBuffer()
        assert buffer.feed(b"data: a\r\n\r\n") == ["data: a", ""]

    def test_utf8_sequence_split_across_chunks(self):
        encoded = "data: réponse\n".encode("utf-8")
        cut = encoded.index("é".encode("utf-8")) + 1

        buffer = StreamLineBuffer()
        lines = buffer.feed(encoded[:cut]) + buffer.feed(encoded[cut:])

        assert lines == ["data: réponse"]

    def test_flush_returns_trailing_fragment(self):
        buffer = StreamLineBuffer()
        buffer.feed(b"data: a\ndata: trunc")
        assert buffer.flush() == "data: trunc"
        assert buffer.flush() == ""

from __future__ import annotations

import io
import logging
import os

import pytest

from console_server.runner import LineStreamer, LogEvent
from tests.conftest import RecordingSink


class FailingSource:
    def __init__(self, lines: list[bytes]) -> None:
        self._lines = list(lines)

    def readline(self) -> bytes:
        if self._lines:
            return self._lines.pop(0)
        raise OSError(5, "Input/output error")


def test_lines_are_published_in_order() -> None:
    sink = RecordingSink()
    source = io.BytesIO(b"A\nB\nC\n")

    LineStreamer(source, sink, is_error=False, name="stdout").run()

    assert sink.events == [LogEvent("A", False), LogEvent("B", False), LogEvent("C", False)]
    assert source.closed


def test_terminators_are_trimmed_and_last_partial_line_is_kept() -> None:
    sink = RecordingSink()
    LineStreamer(io.BytesIO(b"one\r\ntwo\n\nthree"), sink, is_error=True, name="stderr").run()

    assert [event.message for event in sink.events] == ["one", "two", "", "three"]
    assert all(event.is_error for event in sink.events)


def test_undecodable_bytes_are_replaced() -> None:
    sink = RecordingSink()
    LineStreamer(io.BytesIO(b"caf\xc3\xa9 \xff\n"), sink, is_error=False, name="stdout").run()

    assert sink.events == [LogEvent("café \ufffd", False)]


def test_read_error_ends_stream_quietly(caplog: pytest.LogCaptureFixture) -> None:
    sink = RecordingSink()
    streamer = LineStreamer(FailingSource([b"first\n"]), sink, is_error=False, name="stdout")

    with caplog.at_level(logging.ERROR, logger="console_server.runner.log_stream"):
        streamer.run()

    assert sink.events == [LogEvent("first", False)]
    assert "Error reading stdout stream" in caplog.text


def test_events_are_lazy_and_not_restartable() -> None:
    sink = RecordingSink()
    streamer = LineStreamer(io.BytesIO(b"x\ny\n"), sink, is_error=False, name="stdout")

    events = streamer.events()
    assert next(events) == LogEvent("x", False)
    assert list(events) == [LogEvent("y", False)]
    assert list(streamer.events()) == []
    assert sink.events == []


def test_start_pumps_a_pipe_on_a_background_thread() -> None:
    sink = RecordingSink()
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "rb")
    streamer = LineStreamer(reader, sink, is_error=False, name="pipe")

    thread = streamer.start()
    with os.fdopen(write_fd, "wb") as writer:
        writer.write(b"hello\nworld\n")

    streamer.join(timeout=5)
    assert not thread.is_alive()
    assert sink.events == [LogEvent("hello", False), LogEvent("world", False)]
    assert reader.closed

"""Line-oriented streaming of child process output."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

__all__ = ["ByteSource", "LineStreamer", "LogEvent", "LogSink"]

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LogEvent:
    """A single line of output, tagged by the channel it came from."""

    message: str
    is_error: bool = False


class ByteSource(Protocol):
    """Anything that yields newline-terminated byte chunks, ``b""`` at EOF."""

    def readline(self) -> bytes: ...


class LogSink(Protocol):
    """Receiver of log events. ``publish`` must not block on consumers."""

    def publish(self, event: LogEvent) -> None: ...


class LineStreamer:
    """Turn one byte stream into a sequence of :class:`LogEvent` values."""

    def __init__(self, source: ByteSource, sink: LogSink, *, is_error: bool, name: str) -> None:
        self.source = source
        self.sink = sink
        self.is_error = is_error
        self.name = name
        self._thread: threading.Thread | None = None

    def events(self) -> Iterator[LogEvent]:
        """Yield one event per line until EOF or a read error.

        The generator consumes the underlying stream, so it cannot be restarted.
        """

        while True:
            try:
                raw = self.source.readline()
            except (OSError, ValueError):
                logger.exception("Error reading %s stream", self.name)
                return
            if not raw:
                break
            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            yield LogEvent(message=text, is_error=self.is_error)
        logger.debug("%s stream closed", self.name)

    def run(self) -> None:
        try:
            for event in self.events():
                self.sink.publish(event)
        finally:
            close = getattr(self.source, "close", None)
            if close is not None:
                close()

    def start(self) -> threading.Thread:
        """Pump the stream on a daemon thread; it ends when the stream closes."""

        thread = threading.Thread(target=self.run, name=f"streamer-{self.name}", daemon=True)
        thread.start()
        self._thread = thread
        return thread

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

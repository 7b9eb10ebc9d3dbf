"""In-memory fan-out of log events to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from asyncio import AbstractEventLoop
from collections.abc import Callable
from threading import Lock

from console_server.runner.log_stream import LogEvent

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000

LogSubscription = tuple[asyncio.Queue[LogEvent | None], AbstractEventLoop, Callable[[], None]]


def _deliver(queue: asyncio.Queue[LogEvent | None], event: LogEvent | None) -> None:
    # Runs on the subscriber's loop. A full queue drops its oldest event.
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(event)


class LogBroadcaster:
    """Fan log events out to every current subscriber.

    ``publish`` is safe to call from any thread and never waits on a
    subscriber. Events are not retained: a subscriber only sees events
    published after it subscribed. Each subscriber queue is bounded by
    ``queue_size`` and drops its oldest entry when full.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self.queue_size = queue_size
        self._subscribers: list[tuple[asyncio.Queue[LogEvent | None], AbstractEventLoop]] = []
        self._lock = Lock()

    def publish(self, event: LogEvent) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for queue, loop in subscribers:
            try:
                loop.call_soon_threadsafe(_deliver, queue, event)
            except RuntimeError:
                logger.debug("Dropping subscriber whose event loop is closed")
                self._remove(queue, loop)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> LogSubscription:
        """Register a queue on the running loop; call the returned closer when done."""

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[LogEvent | None] = asyncio.Queue(maxsize=self.queue_size)
        with self._lock:
            self._subscribers.append((queue, loop))

        def _unsubscribe() -> None:
            if self._remove(queue, loop):
                loop.call_soon_threadsafe(_deliver, queue, None)

        return queue, loop, _unsubscribe

    def _remove(self, queue: asyncio.Queue[LogEvent | None], loop: AbstractEventLoop) -> bool:
        with self._lock:
            if (queue, loop) in self._subscribers:
                self._subscribers.remove((queue, loop))
                return True
        return False


__all__ = ["DEFAULT_QUEUE_SIZE", "LogBroadcaster", "LogSubscription"]

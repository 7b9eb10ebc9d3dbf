"""Shared state for the HTTP and WebSocket handlers."""

from dataclasses import dataclass

from starlette.requests import HTTPConnection

from console_server.api.streams import LogBroadcaster
from console_server.config import ServerSettings
from console_server.runner import ProcessSupervisor


@dataclass(slots=True)
class AppContext:
    """The one supervisor and broadcaster pair served by an application."""

    settings: ServerSettings
    broadcaster: LogBroadcaster
    supervisor: ProcessSupervisor

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "AppContext":
        broadcaster = LogBroadcaster(queue_size=settings.subscriber_queue_size)
        supervisor = ProcessSupervisor(settings, broadcaster)
        return cls(settings=settings, broadcaster=broadcaster, supervisor=supervisor)


def get_app_context(connection: HTTPConnection) -> AppContext:
    """Dependency returning the context stored on ``app.state`` by ``create_app``.

    Works for both plain requests and WebSocket connections.
    """

    context = getattr(connection.app.state, "context", None)
    if not isinstance(context, AppContext):
        raise RuntimeError("create_app() did not attach an AppContext to this application")
    return context


__all__ = ["AppContext", "get_app_context"]

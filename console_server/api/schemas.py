"""Pydantic schemas shared across API routers."""

from __future__ import annotations

from pydantic import BaseModel

from console_server.runner import LogEvent


class APIMessage(BaseModel):
    """Simple message envelope."""

    message: str


class CommandRequest(BaseModel):
    """Body of ``POST /api/send-command``; emptiness is checked by the supervisor."""

    command: str


class LogEventMessage(BaseModel):
    """Wire shape of a log event pushed over ``/ws/logs``."""

    message: str
    is_error: bool

    @classmethod
    def from_event(cls, event: LogEvent) -> LogEventMessage:
        return cls(message=event.message, is_error=event.is_error)


__all__ = ["APIMessage", "CommandRequest", "LogEventMessage"]

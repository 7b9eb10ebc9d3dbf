# ruff: noqa: B008
"""Process control endpoints: start, stop and send-command."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from console_server.api.context import AppContext, get_app_context
from console_server.api.schemas import CommandRequest
from console_server.runner import (
    CommandValidationError,
    ProcessNotRunningError,
    SupervisorError,
)

router = APIRouter(prefix="/api", tags=["process"])


def _error_response(exc: SupervisorError) -> PlainTextResponse:
    if isinstance(exc, CommandValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ProcessNotRunningError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return PlainTextResponse(str(exc), status_code=code)


@router.post("/start", response_class=PlainTextResponse)
def start_server(context: AppContext = Depends(get_app_context)) -> PlainTextResponse:
    try:
        result = context.supervisor.start()
    except SupervisorError as exc:
        return _error_response(exc)
    return PlainTextResponse(result.message)


@router.post("/stop", response_class=PlainTextResponse)
def stop_server(context: AppContext = Depends(get_app_context)) -> PlainTextResponse:
    try:
        message = context.supervisor.stop()
    except SupervisorError as exc:
        return _error_response(exc)
    return PlainTextResponse(message)


@router.post("/send-command", response_class=PlainTextResponse)
@router.post("/command", response_class=PlainTextResponse, include_in_schema=False)
def send_command(
    payload: CommandRequest,
    context: AppContext = Depends(get_app_context),
) -> PlainTextResponse:
    try:
        message = context.supervisor.send_command(payload.command)
    except SupervisorError as exc:
        return _error_response(exc)
    return PlainTextResponse(message)


__all__ = ["router"]

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from console_server.api.context import AppContext
from console_server.api.main import create_app
from tests.conftest import ECHO_SCRIPT, python_settings


@pytest.fixture()
def context(tmp_path: Path):
    context = AppContext.from_settings(python_settings(tmp_path, ECHO_SCRIPT))
    yield context
    if context.supervisor.identifier is not None:
        context.supervisor.stop()


@pytest.fixture()
def app(context):
    return create_app(context)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client

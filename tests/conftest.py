import logging
import socket

import pytest
from fastapi.testclient import TestClient

from makefile_app.config import Settings
from makefile_app.server import AppServer, create_app


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == "makefile_app":
            root.removeHandler(handler)
    for name in ("makefile_app", "uvicorn", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture()
def settings() -> Settings:
    return Settings(host="127.0.0.1", port=0, log_level="WARNING")


@pytest.fixture()
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture()
def live_server(settings):
    """A real uvicorn server on an ephemeral port."""
    with AppServer(settings) as srv:
        yield srv


@pytest.fixture()
def free_port() -> int:
    """A port that nothing is listening on (best effort)."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]

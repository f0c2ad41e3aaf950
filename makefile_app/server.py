"""
server.py

Responsibility: Serve the three fixed plaintext routes over HTTP.

- `create_app` builds the FastAPI application (routing only, no I/O). Every
  route accepts any method, and `/` also serves every path not otherwise
  registered.
- `bind_listener` opens the listening socket and reports failures as `ServerError`.
- `AppServer` owns one listener plus one uvicorn server, and can either block
  in `serve()` or run on a background thread via `start()` / `stop()`.

Nothing in this module exits the process; the CLI decides that.
"""

from __future__ import annotations

import logging
import socket
import threading
import time

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.types import Receive, Scope, Send

from makefile_app.config import Settings
from makefile_app.logging_config import uvicorn_level

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Hello! Welcome to the Go Makefile Project!\n"
HEALTH_TEXT = "OK\n"

LISTEN_BACKLOG = 2048


class ServerError(RuntimeError):
    pass


class PlainTextEndpoint:
    """
    ASGI app that answers any request with `200` and a fixed text body.

    Mounted as a raw ASGI endpoint (not a function), so Starlette leaves the
    route's methods unrestricted and no method ever gets a 405.
    """

    def __init__(self, text: str) -> None:
        self.text = text

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await PlainTextResponse(self.text)(scope, receive, send)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory.

    Docs and OpenAPI routes are disabled. `/health` and `/version` are exact
    matches; `/` is a subtree, so any other path gets the welcome text.
    """
    settings = settings or Settings()
    app = FastAPI(
        title="makefile-app",
        version=settings.version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings

    welcome = PlainTextEndpoint(WELCOME_TEXT)
    app.add_route("/health", PlainTextEndpoint(HEALTH_TEXT))
    app.add_route("/version", PlainTextEndpoint(f"Version: {settings.version}\n"))
    app.add_route("/", welcome)
    # must stay last
    app.add_route("/{path:path}", welcome)
    return app


def bind_listener(host: str, port: int) -> socket.socket:
    """
    Open a listening TCP socket on (host, port).

    Raises ServerError if the address cannot be bound (in use, permission
    denied, unknown host). Binding while another live listener holds the port
    always fails.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        sock = socket.create_server((host, port), family=family, backlog=LISTEN_BACKLOG)
    except OSError as e:
        raise ServerError(f"Cannot listen on {host}:{port}: {e.strerror or e}") from e
    return sock


class AppServer:
    def __init__(self, settings: Settings, app: FastAPI | None = None) -> None:
        self.settings = settings
        self.app = app if app is not None else create_app(settings)
        self._sock: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    def __enter__(self) -> AppServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def port(self) -> int:
        """The bound port once listening, otherwise the configured one."""
        if self._sock is not None:
            return int(self._sock.getsockname()[1])
        return self.settings.port

    @property
    def base_url(self) -> str:
        host = self.settings.host
        if host in ("0.0.0.0", ""):
            host = "127.0.0.1"
        elif host == "::":
            host = "::1"
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{self.port}"

    @property
    def started(self) -> bool:
        return self._server is not None and bool(self._server.started)

    def bind(self) -> None:
        if self._sock is None:
            self._sock = bind_listener(self.settings.host, self.settings.port)

    def _uvicorn_server(self) -> uvicorn.Server:
        if self._server is None:
            config = uvicorn.Config(
                self.app,
                log_config=None,
                log_level=uvicorn_level(self.settings.log_level).lower(),
                access_log=self.settings.access_log,
                lifespan="off",
                backlog=LISTEN_BACKLOG,
            )
            # Config resets the uvicorn logger levels; re-open the access log
            if self.settings.access_log:
                logging.getLogger("uvicorn.access").setLevel(logging.INFO)
            self._server = uvicorn.Server(config)
        return self._server

    def _close_listener(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def serve(self) -> None:
        """
        Bind (if not already bound) and block serving requests until shutdown.

        SIGINT/SIGTERM are handled by uvicorn as a graceful shutdown; this
        method then returns normally.
        """
        self.bind()
        if self._sock is None:
            raise ServerError(f"No listener bound on port {self.settings.port}")
        server = self._uvicorn_server()
        port = self.port
        logger.info("Starting server on port %s...", port)
        try:
            server.run(sockets=[self._sock])
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down.")
        finally:
            self._close_listener()
            self._server = None
        logger.info("Server on port %s stopped", port)

    def start(self, timeout: float = 10.0) -> None:
        """Run `serve()` on a daemon thread and wait until it accepts requests."""
        if self._thread is not None and self._thread.is_alive():
            raise ServerError("Server is already running")
        self.bind()
        server = self._uvicorn_server()
        self._thread = threading.Thread(target=self.serve, name=f"makefile-app:{self.port}", daemon=True)
        self._thread.start()

        deadline = time.monotonic() + timeout
        while not server.started:
            if not self._thread.is_alive():
                raise ServerError(f"Server on port {self.port} exited during startup")
            if time.monotonic() >= deadline:
                self.stop()
                raise ServerError(f"Server on port {self.port} did not start within {timeout}s")
            time.sleep(0.01)

    def stop(self, timeout: float = 10.0) -> None:
        """Ask a background server to exit and wait for it."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                raise ServerError(f"Server on port {self.port} did not stop within {timeout}s")
            self._thread = None
        self._close_listener()


def run_server(settings: Settings) -> None:
    """Bind and serve until shutdown. Raises ServerError if binding fails."""
    AppServer(settings).serve()

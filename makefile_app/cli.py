"""
cli.py

Responsibility: CLI entrypoint for makefile-app.

Commands:
- `serve`: resolve settings, bind the listener and serve until shutdown
- `check`: probe a running server and print the response body
- `version`: print the build version

This module orchestrates and owns exit codes; the other modules only raise:
- Settings: `config.py`
- Serving: `server.py`
- Probing: `client.py`
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from types import FrameType

from makefile_app import __version__
from makefile_app.client import ROUTES, ClientError, ServerClient
from makefile_app.config import LOG_LEVELS, ConfigError, load_settings
from makefile_app.logging_config import setup_logging
from makefile_app.server import AppServer, ServerError

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    pass


def _terminate(signum: int, _frame: FrameType | None) -> None:
    # uvicorn re-raises the signal it caught once it has shut down; turn that
    # into the same clean exit as Ctrl-C.
    raise KeyboardInterrupt


def serve_cmd(args: argparse.Namespace) -> int:
    settings = load_settings(
        config_path=args.config,
        overrides={
            "host": args.host,
            "port": args.port,
            "log_level": args.log_level,
            "access_log": True if args.access_log else None,
        },
    )
    setup_logging(settings.log_level, access_log=settings.access_log)

    server = AppServer(settings)
    server.bind()
    signal.signal(signal.SIGTERM, _terminate)
    server.serve()
    return 0


def check_cmd(args: argparse.Namespace) -> int:
    if args.route not in ROUTES:
        raise CLIError(f"Unknown route {args.route!r}")
    with ServerClient(args.url, timeout=args.timeout) as client:
        result = client.get(args.route)
    sys.stdout.write(result.body)
    if not result.ok:
        logger.error("GET %s returned %s", result.path, result.status_code)
        return 1
    return 0


def version_cmd(args: argparse.Namespace) -> int:
    print(f"makefile-app {__version__}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="makefile-app", description="makefile-app - tiny plaintext HTTP service")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("serve", help="Run the HTTP server")
    s.add_argument("--host", default=None, help="Interface to bind (default: 0.0.0.0, env HOST)")
    s.add_argument("--port", default=None, help="Port to listen on (default: 8080, env PORT)")
    s.add_argument("--config", default=None, help="Optional YAML config file")
    s.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: INFO, env LOG_LEVEL)",
    )
    s.add_argument("--access-log", action="store_true", help="Log every request")
    s.set_defaults(func=serve_cmd)

    c = sub.add_parser("check", help="Probe a running server")
    c.add_argument("--url", default="http://127.0.0.1:8080", help="Server base URL (default: http://127.0.0.1:8080)")
    c.add_argument("--route", default="health", choices=sorted(ROUTES), help="Route to request (default: health)")
    c.add_argument("--timeout", type=float, default=5.0, help="Request timeout in seconds (default: 5)")
    c.set_defaults(func=check_cmd)

    v = sub.add_parser("version", help="Print the build version")
    v.set_defaults(func=version_cmd)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(args, "log_level", None) or "INFO")
    try:
        return int(args.func(args))
    except (ConfigError, ServerError, ClientError, CLIError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

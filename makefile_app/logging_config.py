"""
logging_config.py

Responsibility: Process-wide logging setup.

Package loggers follow the configured level. uvicorn only reports warnings
unless DEBUG is requested, so startup prints a single line of our own.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "makefile_app"


def uvicorn_level(level: str) -> str:
    return "DEBUG" if level.upper() == "DEBUG" else "WARNING"


def setup_logging(level: str = "INFO", *, access_log: bool = False) -> logging.Logger:
    """Attach a stdout handler to the root logger and set the package level.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger()
    root.setLevel(logging.WARNING)  # keep third-party noise down

    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger("makefile_app").setLevel(numeric)
    # uvicorn runs with log_config=None, so its loggers propagate here
    logging.getLogger("uvicorn").setLevel(uvicorn_level(level))
    if access_log:
        logging.getLogger("uvicorn.access").setLevel(logging.INFO)

    return root

"""
makefile_app package

A tiny plaintext HTTP service used to demonstrate build automation.

Key responsibilities are split across modules:
- `config.py`: layered settings (defaults, YAML file, environment, CLI flags)
- `logging_config.py`: process-wide logging setup
- `server.py`: FastAPI routes, listener binding and the uvicorn-backed server
- `client.py`: probe a running server over HTTP
- `cli.py`: CLI entrypoint (serve / check / version)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "1.0.0"

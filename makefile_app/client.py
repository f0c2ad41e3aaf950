"""
client.py

Responsibility: Talk to a running makefile-app server over HTTP.

Used by `makefile-app check` as a liveness probe and by the integration
tests. This is the only module that sends HTTP requests.
"""

from __future__ import annotations

from dataclasses import dataclass

import requests

ROUTES = {
    "root": "/",
    "health": "/health",
    "version": "/version",
}


class ClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ProbeResult:
    path: str
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class ServerClient:
    def __init__(self, base_url: str = "http://127.0.0.1:8080", *, timeout: float = 5.0) -> None:
        if not base_url.strip():
            raise ClientError("Server URL is required.")
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers["User-Agent"] = "makefile-app-check"

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> ServerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request(self, method: str, path: str) -> ProbeResult:
        url = f"{self._base_url}{path}"
        try:
            r = self._session.request(method, url, timeout=self._timeout)
        except requests.RequestException as e:
            raise ClientError(f"{method} {url} failed: {e}") from e
        return ProbeResult(path=path, status_code=r.status_code, body=r.text)

    def get(self, route: str) -> ProbeResult:
        """
        GET one of the named routes (`root`, `health`, `version`).
        """
        try:
            path = ROUTES[route]
        except KeyError:
            raise ClientError(f"Unknown route {route!r} (expected one of: {', '.join(ROUTES)})") from None
        return self.request("GET", path)

    def welcome(self) -> str:
        return self._expect_ok(self.get("root"))

    def health(self) -> bool:
        """True when /health answers 200 with the expected body."""
        try:
            result = self.get("health")
        except ClientError:
            return False
        return result.ok and result.body == "OK\n"

    def version(self) -> str:
        """Return the bare version string reported by /version."""
        body = self._expect_ok(self.get("version"))
        prefix = "Version: "
        if not body.startswith(prefix):
            raise ClientError(f"Unexpected /version body: {body!r}")
        return body[len(prefix) :].strip()

    @staticmethod
    def _expect_ok(result: ProbeResult) -> str:
        if not result.ok:
            raise ClientError(f"GET {result.path} returned {result.status_code}: {result.body!r}")
        return result.body

import pytest
from fastapi.testclient import TestClient

from makefile_app.config import Settings
from makefile_app.server import create_app

BODY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
UNUSUAL_METHODS = ["TRACE", "PROPFIND", "PURGE", "BREW"]

WELCOME = "Hello! Welcome to the Go Makefile Project!\n"

EXPECTED = {
    "/": WELCOME,
    "/health": "OK\n",
    "/version": "Version: 1.0.0\n",
}


@pytest.mark.parametrize("method", BODY_METHODS)
@pytest.mark.parametrize("path", sorted(EXPECTED))
def test_route_answers_every_method(client: TestClient, method: str, path: str) -> None:
    r = client.request(method, path)
    assert r.status_code == 200
    assert r.text == EXPECTED[path]
    assert r.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize("method", UNUSUAL_METHODS)
@pytest.mark.parametrize("path", sorted(EXPECTED))
def test_route_answers_nonstandard_methods(client: TestClient, method: str, path: str) -> None:
    r = client.request(method, path)
    assert r.status_code == 200
    assert r.text == EXPECTED[path]


@pytest.mark.parametrize("path", sorted(EXPECTED))
def test_head_is_ok(client: TestClient, path: str) -> None:
    r = client.head(path)
    assert r.status_code == 200


def test_health() -> None:
    client = TestClient(create_app())
    r = client.get("/health")
    assert r.status_code == 200
    assert r.text == "OK\n"


def test_request_body_and_query_are_ignored(client: TestClient) -> None:
    r = client.post("/version?verbose=1", json={"version": "9.9.9"})
    assert r.status_code == 200
    assert r.text == "Version: 1.0.0\n"


def test_version_comes_from_settings() -> None:
    client = TestClient(create_app(Settings(version="2.3.4")))
    assert client.get("/version").text == "Version: 2.3.4\n"


@pytest.mark.parametrize("path", ["/anything", "/health/extra", "/version/", "/docs", "/openapi.json", "/a/b/c"])
@pytest.mark.parametrize("method", ["GET", "DELETE", "PURGE"])
def test_unregistered_paths_get_the_welcome_text(client: TestClient, method: str, path: str) -> None:
    r = client.request(method, path)
    assert r.status_code == 200
    assert r.text == WELCOME


def test_routes_registered() -> None:
    app = create_app()
    assert [route.path for route in app.routes] == ["/health", "/version", "/", "/{path:path}"]

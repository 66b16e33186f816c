"""Pytest configuration and shared fixtures."""

import json
import os
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

# Set test environment before importing settings
os.environ["TATTLE_LOG_LEVEL"] = "DEBUG"
os.environ["TATTLE_LOG_FORMAT"] = "text"

from tattle.config import get_settings  # noqa: E402
from tattle.services import BackgroundWorkTracker  # noqa: E402

COLLECTOR_URL = "https://my.app.com/transactions"


class Collector:
    """Fake collector endpoint backed by httpx.MockTransport."""

    def __init__(self, status_code: int = 201, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"status": "ok"})

    @property
    def bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class CountingTracker(BackgroundWorkTracker):
    """Tracker that remembers how many tokens were handed out and returned."""

    def __init__(self) -> None:
        super().__init__()
        self.begun = 0
        self.ended = 0

    def begin(self, label: str):
        self.begun += 1
        return super().begin(label)

    def end(self, token) -> None:
        self.ended += 1
        super().end(token)


class Identity(BaseModel):
    """Identity the fake auth layer resolves."""

    id: str
    name: str


def authenticate(request: Request) -> None:
    """Fake auth dependency: trusts the X-User header."""
    user = request.headers.get("x-user")
    if user:
        request.state.user = Identity(id="42", name=user)


def build_app() -> FastAPI:
    """Small app with the routes the reporter tests hit."""
    app = FastAPI()

    @app.get("/test", status_code=203, dependencies=[Depends(authenticate)])
    async def test_route() -> dict[str, str]:
        return {"foo": "bar"}

    @app.get("/created", status_code=201)
    async def created_route() -> dict[str, str]:
        return {"foo": "bar"}

    @app.get("/forbidden")
    async def forbidden_route() -> None:
        raise HTTPException(status_code=403, detail="not allowed")

    @app.get("/health")
    async def health_route() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/boom")
    async def boom_route() -> None:
        raise RuntimeError("handler exploded")

    return app


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Each test sees a fresh view of the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def collector() -> Collector:
    return Collector()


@pytest.fixture
def make_collector() -> type[Collector]:
    return Collector


@pytest.fixture
def tracker() -> CountingTracker:
    return CountingTracker()


@pytest.fixture
def app_factory() -> Callable[[], FastAPI]:
    return build_app


def _asgi_client(app: FastAPI) -> httpx.AsyncClient:
    """In-process client; app errors come back as 500 responses."""
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    )


@pytest.fixture
def asgi_client() -> Callable[[FastAPI], httpx.AsyncClient]:
    return _asgi_client


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Slow tests")

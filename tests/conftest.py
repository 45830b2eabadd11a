from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from prometheus_app.config import get_settings
from prometheus_app.main import create_app, create_metrics_app
from prometheus_app.observability.metrics import create_registry
from prometheus_app.services.delay import NoDelay


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENABLE_DELAY", "false")
    monkeypatch.setenv("METRICS_NAMESPACE", "prometheus_app")
    monkeypatch.setenv("APP_VERSION", "1.0.0")
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()


@pytest.fixture
def app() -> FastAPI:
    # Runtime collectors are left out so sample lookups only see our instruments.
    return create_app(delay=NoDelay(), registry=create_registry(runtime_collectors=False))


@pytest.fixture
def metrics(app: FastAPI):
    return app.state.metrics


@pytest.fixture
def registry(metrics):
    return metrics.registry


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def metrics_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=create_metrics_app(app.state.metrics))
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

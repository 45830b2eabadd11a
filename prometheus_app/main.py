from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.routing import BaseRoute

from prometheus_app.api.devices import router as devices_router
from prometheus_app.api.metrics import router as metrics_router
from prometheus_app.config import Settings, get_settings
from prometheus_app.observability.metrics import DeviceMetrics, create_registry
from prometheus_app.observability.middleware import RequestContextMiddleware
from prometheus_app.services.delay import DelayStrategy, NoDelay, RandomDelay
from prometheus_app.services.device_store import DeviceStore, seeded_store


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = request
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


METHOD_ORDER = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


def allowed_methods(routes: list[BaseRoute], path: str) -> list[str]:
    """Methods served by any route whose template matches ``path``."""

    methods: set[str] = set()
    for route in routes:
        path_regex = getattr(route, "path_regex", None)
        route_methods = getattr(route, "methods", None)
        if path_regex is not None and route_methods and path_regex.match(path):
            methods.update(route_methods)
    known = [m for m in METHOD_ORDER if m in methods]
    return known + sorted(methods.difference(METHOD_ORDER))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code != 405:
        return await http_exception_handler(request, exc)

    allow = ", ".join(allowed_methods(request.app.router.routes, request.scope["path"]))
    return JSONResponse(status_code=405, content={"detail": exc.detail}, headers={"Allow": allow})


def create_app(
    settings: Settings | None = None,
    store: DeviceStore | None = None,
    delay: DelayStrategy | None = None,
    registry: CollectorRegistry | None = None,
) -> FastAPI:
    """Build the device API with its own metrics registry.

    The registry (reachable as ``app.state.metrics.registry``) is shared with
    ``create_metrics_app`` to expose it on the scrape listener.
    """

    settings = settings or get_settings()
    if store is None:
        store = seeded_store()
    if delay is None:
        delay = RandomDelay(settings.delay_seed) if settings.enable_delay else NoDelay()
    if registry is None:
        registry = create_registry()

    metrics = DeviceMetrics(registry, namespace=settings.metrics_namespace)
    metrics.set_device_count(len(store))
    metrics.set_version(settings.app_version)

    app = FastAPI(title="Prometheus App", version=settings.app_version)
    app.state.settings = settings
    app.state.store = store
    app.state.metrics = metrics
    app.state.delay = delay

    app.include_router(devices_router)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_middleware(RequestContextMiddleware, metrics=metrics)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def create_metrics_app(metrics: DeviceMetrics) -> FastAPI:
    app = FastAPI(title="Prometheus App metrics", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.metrics = metrics
    app.include_router(metrics_router)
    return app

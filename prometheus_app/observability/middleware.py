from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import MutableHeaders

from prometheus_app.observability.metrics import DeviceMetrics


def route_path(scope: dict[str, Any]) -> str:
    """Label for the request path: the matched route template when there is one."""

    route = scope.get("route")
    template = getattr(route, "path", None)
    if isinstance(template, str) and template:
        return template
    return str(scope.get("path") or "")


class RequestContextMiddleware:
    """Adds request_id context, access logs, and the request duration summary.

    The status label comes from the ``http.response.start`` message actually
    sent, so it reflects error responses too.
    """

    def __init__(self, app: Callable[..., Any], metrics: DeviceMetrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())
        method = scope.get("method")

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=scope.get("path"),
            method=method,
        )

        start = perf_counter()
        status_code: int = 500

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code

            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers["X-Request-ID"] = request_id

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed = perf_counter() - start

            # Update metrics first so they update even if logging misbehaves.
            self.metrics.observe_request(
                status=status_code,
                method=str(method),
                path=route_path(scope),
                seconds=elapsed,
            )

            structlog.get_logger("access").info(
                "http_request",
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000.0, 2),
            )

            structlog.contextvars.clear_contextvars()

from __future__ import annotations

import asyncio

import structlog
import uvicorn
from fastapi import FastAPI

from prometheus_app.config import Settings
from prometheus_app.main import create_app, create_metrics_app
from prometheus_app.observability.logging import configure_logging

logger = structlog.get_logger(__name__)


def build_servers(settings: Settings) -> list[uvicorn.Server]:
    api_app = create_app(settings)
    metrics_app = create_metrics_app(api_app.state.metrics)
    return [
        _server(api_app, settings.host, settings.api_port),
        _server(metrics_app, settings.host, settings.metrics_port),
    ]


def _server(app: FastAPI, host: str, port: int) -> uvicorn.Server:
    # log_config=None keeps the structlog handlers from configure_logging.
    config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
    return uvicorn.Server(config)


async def serve(servers: list[uvicorn.Server]) -> None:
    """Run every server until the first one stops, then stop the rest.

    Raises SystemExit(1) when a server never came up (e.g. port already bound).
    """

    tasks = [asyncio.create_task(server.serve()) for server in servers]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

    for server in servers:
        server.should_exit = True
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    for task in done:
        task.result()

    failed = [server.config.port for server in servers if not server.started]
    if failed:
        logger.error("listeners.failed", ports=failed)
        raise SystemExit(1)


def run(settings: Settings) -> None:
    configure_logging(settings.log_level, version=settings.app_version)
    logger.info(
        "listeners.starting",
        host=settings.host,
        api_port=settings.api_port,
        metrics_port=settings.metrics_port,
        version=settings.app_version,
    )
    asyncio.run(serve(build_servers(settings)))

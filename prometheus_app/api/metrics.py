from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from prometheus_app.observability.metrics import DeviceMetrics
from prometheus_app.services.dependencies import get_device_metrics


router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
async def metrics(metrics: DeviceMetrics = Depends(get_device_metrics)) -> Response:
    """Every instrument on the registry in Prometheus text exposition format."""

    content, media_type = metrics.render()
    return Response(content=content, media_type=media_type)

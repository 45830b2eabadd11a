from __future__ import annotations

from time import perf_counter

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from prometheus_app.config import Settings
from prometheus_app.models.schemas import Device, FirmwareUpgrade
from prometheus_app.observability.metrics import DeviceMetrics
from prometheus_app.observability.middleware import route_path
from prometheus_app.services.delay import DelayStrategy
from prometheus_app.services.dependencies import get_app_settings, get_delay, get_device_metrics, get_store
from prometheus_app.services.device_store import DeviceStore

router = APIRouter(tags=["devices"])

logger = structlog.get_logger(__name__)

UPGRADE_DEVICE_TYPE = "router"


def parse_device_id(raw: str) -> int | None:
    """Positive integer id from a path segment, or None."""

    sign, digits = (raw[0], raw[1:]) if raw[:1] in ("+", "-") else ("", raw)
    if not (digits.isascii() and digits.isdigit()):
        return None
    device_id = int(sign + digits)
    return device_id if device_id >= 1 else None


@router.get("/devices", response_model=list[Device])
async def list_devices(
    request: Request,
    store: DeviceStore = Depends(get_store),
    metrics: DeviceMetrics = Depends(get_device_metrics),
    delay: DelayStrategy = Depends(get_delay),
    settings: Settings = Depends(get_app_settings),
) -> list[Device]:
    start = perf_counter()
    devices = store.list()
    await delay.pause(settings.list_delay_ms)

    metrics.observe_list(
        status=200,
        method=request.method,
        path=route_path(request.scope),
        seconds=perf_counter() - start,
    )
    return devices


@router.post("/devices", status_code=201, response_class=PlainTextResponse)
async def create_device(
    device: Device,
    store: DeviceStore = Depends(get_store),
    metrics: DeviceMetrics = Depends(get_device_metrics),
) -> PlainTextResponse:
    store.append(device)
    count = len(store)
    metrics.set_device_count(count)

    logger.info("device.created", device_id=device.id, mac=device.mac, device_count=count)
    return PlainTextResponse("Device created.", status_code=201)


@router.put("/devices/{device_id}", status_code=202, response_class=PlainTextResponse)
async def upgrade_device(
    device_id: str,
    request: Request,
    store: DeviceStore = Depends(get_store),
    metrics: DeviceMetrics = Depends(get_device_metrics),
    delay: DelayStrategy = Depends(get_delay),
    settings: Settings = Depends(get_app_settings),
) -> PlainTextResponse:
    # The id is checked before the body is read so a bad id is always a 404.
    parsed_id = parse_device_id(device_id)
    if parsed_id is None:
        raise HTTPException(status_code=404, detail="Not Found")

    body = await request.body()
    try:
        upgrade = FirmwareUpgrade.model_validate_json(body)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_input=False)) from exc

    matched = store.update_firmware(parsed_id, upgrade.firmware)
    await delay.pause(settings.upgrade_delay_ms)
    metrics.record_upgrade(UPGRADE_DEVICE_TYPE)

    logger.info("device.upgraded", device_id=parsed_id, firmware=upgrade.firmware, matched=matched)
    return PlainTextResponse("Device upgraded.", status_code=202)


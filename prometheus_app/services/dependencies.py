from __future__ import annotations

from fastapi import Request

from prometheus_app.config import Settings
from prometheus_app.observability.metrics import DeviceMetrics
from prometheus_app.services.delay import DelayStrategy
from prometheus_app.services.device_store import DeviceStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DeviceStore:
    return request.app.state.store


def get_device_metrics(request: Request) -> DeviceMetrics:
    return request.app.state.metrics


def get_delay(request: Request) -> DelayStrategy:
    return request.app.state.delay

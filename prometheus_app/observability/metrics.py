from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)
from prometheus_summary import Summary


LIST_DURATION_BUCKETS = (0.1, 0.15, 0.2, 0.25, 0.3)
# (quantile, allowed error): p50, p90, p99.
SUMMARY_QUANTILES = ((0.5, 0.05), (0.9, 0.01), (0.99, 0.001))
REQUEST_LABELS = ("status", "method", "path")

# Methods outside this set share one label value.
KNOWN_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


def method_label(method: str | None) -> str:
    method = (method or "").upper()
    return method if method in KNOWN_METHODS else "OTHER"


def create_registry(runtime_collectors: bool = True) -> CollectorRegistry:
    """Build an isolated registry, optionally with process/platform/GC collectors."""

    registry = CollectorRegistry()
    if runtime_collectors:
        ProcessCollector(registry=registry)
        PlatformCollector(registry=registry)
        GCCollector(registry=registry)
    return registry


class DeviceMetrics:
    """Prometheus instruments for the device API.

    Instruments register on construction; a second ``DeviceMetrics`` on the
    same registry raises ``ValueError`` (duplicated timeseries).
    """

    def __init__(self, registry: CollectorRegistry, namespace: str = "prometheus_app") -> None:
        self.registry = registry
        self.devices = Gauge(
            "device_count",
            "Number of devices",
            namespace=namespace,
            registry=registry,
        )
        self.info = Gauge(
            "version_info",
            "Version information",
            ["version"],
            namespace=namespace,
            registry=registry,
        )
        self.upgrades = Counter(
            "device_upgrades_total",
            "Number of device upgrades",
            ["type"],
            namespace=namespace,
            registry=registry,
        )
        self.duration = Histogram(
            "request_duration_seconds",
            "Request duration in seconds",
            REQUEST_LABELS,
            namespace=namespace,
            registry=registry,
            buckets=LIST_DURATION_BUCKETS,
        )
        self.duration_summary = Summary(
            "request_duration_seconds_summary",
            "Request duration in seconds, all instrumented requests",
            REQUEST_LABELS,
            namespace=namespace,
            registry=registry,
            invariants=SUMMARY_QUANTILES,
        )

    def set_device_count(self, count: int) -> None:
        self.devices.set(count)

    def set_version(self, version: str) -> None:
        self.info.labels(version=version).set(1)

    def record_upgrade(self, device_type: str) -> None:
        self.upgrades.labels(type=device_type).inc()

    def observe_list(self, status: int | str, method: str, path: str, seconds: float) -> None:
        self.duration.labels(status=str(status), method=method_label(method), path=path).observe(seconds)

    def observe_request(self, status: int | str, method: str, path: str, seconds: float) -> None:
        self.duration_summary.labels(status=str(status), method=method_label(method), path=path).observe(seconds)

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST

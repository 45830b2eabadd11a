import pytest
import structlog
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from prometheus_app.observability.metrics import DeviceMetrics, create_registry, method_label


def test_startup_sets_device_count_and_version(registry) -> None:
    assert registry.get_sample_value("prometheus_app_device_count") == 2.0
    assert registry.get_sample_value("prometheus_app_version_info", {"version": "1.0.0"}) == 1.0


def test_duplicate_registration_raises() -> None:
    registry = CollectorRegistry()
    DeviceMetrics(registry)
    with pytest.raises(ValueError):
        DeviceMetrics(registry)


def test_namespace_prefixes_every_instrument() -> None:
    registry = CollectorRegistry()
    metrics = DeviceMetrics(registry, namespace="demo")
    metrics.set_device_count(5)
    metrics.record_upgrade("router")

    assert registry.get_sample_value("demo_device_count") == 5.0
    assert registry.get_sample_value("demo_device_upgrades_total", {"type": "router"}) == 1.0


def test_method_label_folds_unknown_methods() -> None:
    assert method_label("get") == "GET"
    assert method_label("BREW") == "OTHER"
    assert method_label(None) == "OTHER"


def test_runtime_collectors_are_optional() -> None:
    with_runtime = {m.name for m in create_registry().collect()}
    without_runtime = {m.name for m in create_registry(runtime_collectors=False).collect()}

    assert "python_info" in with_runtime
    assert without_runtime == set()


async def test_list_request_observes_histogram(api_client, registry) -> None:
    resp = await api_client.get("/devices")
    assert resp.status_code == 200

    labels = {"status": "200", "method": "GET", "path": "/devices"}
    assert registry.get_sample_value("prometheus_app_request_duration_seconds_count", labels) == 1.0


async def test_histogram_only_tracks_list_requests(api_client, registry) -> None:
    await api_client.post("/devices", json={"id": 3, "mac": "m", "firmware": "f"})
    await api_client.put("/devices/1", json={"firmware": "2.0.0"})

    assert registry.get_sample_value(
        "prometheus_app_request_duration_seconds_count",
        {"status": "200", "method": "GET", "path": "/devices"},
    ) is None


async def test_summary_labels_carry_real_status(api_client, registry) -> None:
    await api_client.post("/devices", json={"id": 3, "mac": "m", "firmware": "f"})
    await api_client.post("/devices", content=b"{broken", headers={"content-type": "application/json"})
    await api_client.delete("/devices")

    name = "prometheus_app_request_duration_seconds_summary_count"
    assert registry.get_sample_value(name, {"status": "201", "method": "POST", "path": "/devices"}) == 1.0
    assert registry.get_sample_value(name, {"status": "400", "method": "POST", "path": "/devices"}) == 1.0
    assert registry.get_sample_value(name, {"status": "405", "method": "DELETE", "path": "/devices"}) == 1.0


async def test_summary_uses_route_template_for_path(api_client, registry) -> None:
    await api_client.put("/devices/1", json={"firmware": "2.0.0"})
    await api_client.put("/devices/2", json={"firmware": "2.0.0"})

    summaries = [
        sample
        for family in registry.collect()
        if family.name == "prometheus_app_request_duration_seconds_summary"
        for sample in family.samples
        if sample.name.endswith("_count") and sample.labels.get("method") == "PUT"
    ]
    assert len(summaries) == 1
    assert summaries[0].labels["status"] == "202"
    assert summaries[0].value == 2.0


async def test_upgrade_increments_counter(api_client, registry) -> None:
    await api_client.put("/devices/1", json={"firmware": "2.0.0"})
    await api_client.put("/devices/2", json={"firmware": "2.0.0"})

    assert registry.get_sample_value("prometheus_app_device_upgrades_total", {"type": "router"}) == 2.0


async def test_metrics_endpoint_exposes_text_format(api_client, metrics_client) -> None:
    await api_client.get("/devices")

    resp = await metrics_client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")

    body = resp.text
    assert "# TYPE prometheus_app_device_count gauge" in body
    assert "# TYPE prometheus_app_request_duration_seconds histogram" in body
    assert "# TYPE prometheus_app_request_duration_seconds_summary summary" in body
    assert 'prometheus_app_version_info{version="1.0.0"} 1.0' in body


async def test_metrics_listener_does_not_serve_device_routes(metrics_client) -> None:
    resp = await metrics_client.get("/devices")
    assert resp.status_code == 404


async def test_summary_exports_configured_quantiles(api_client, metrics_client, registry) -> None:
    await api_client.get("/devices")

    labels = {"status": "200", "method": "GET", "path": "/devices"}
    for quantile in ("0.5", "0.9", "0.99"):
        value = registry.get_sample_value(
            "prometheus_app_request_duration_seconds_summary",
            {**labels, "quantile": quantile},
        )
        assert value is not None
        assert value >= 0.0

    body = (await metrics_client.get("/metrics")).text
    p99 = [
        line
        for line in body.splitlines()
        if line.startswith("prometheus_app_request_duration_seconds_summary{") and 'quantile="0.99"' in line
    ]
    assert len(p99) == 1


async def test_unhandled_error_is_recorded_as_500(app, registry) -> None:
    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("handler exploded")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/boom")

    assert resp.status_code == 500
    assert registry.get_sample_value(
        "prometheus_app_request_duration_seconds_summary_count",
        {"status": "500", "method": "GET", "path": "/boom"},
    ) == 1.0
    assert "request_id" not in structlog.contextvars.get_contextvars()

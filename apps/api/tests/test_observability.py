from fastapi.testclient import TestClient

from guardian_api.app import create_app
from guardian_api.observability import PrometheusApiMetricsCollector


def test_trace_header_is_propagated() -> None:
    app = create_app()
    client = TestClient(app)

    response = client.get("/healthz", headers={"x-trace-id": "trace-abc"})

    assert response.status_code == 200
    assert response.headers["x-trace-id"] == "trace-abc"


def test_trace_header_is_generated_when_missing() -> None:
    client = TestClient(create_app())

    response = client.get("/readyz")

    assert response.status_code == 200
    assert response.headers["x-trace-id"]


def test_api_latency_metric_is_collected() -> None:
    app = create_app()
    client = TestClient(app)

    response = client.get("/healthz")
    metrics = app.state.api_metrics.snapshot()

    assert response.status_code == 200
    assert len(metrics) >= 1
    assert metrics[-1]["path"] == "/healthz"
    assert metrics[-1]["status_code"] == 200
    assert metrics[-1]["duration_ms"] >= 0


def test_request_metrics_use_route_template_not_raw_path() -> None:
    app = create_app()
    client = TestClient(app)

    client.delete("/v1/contacts/4f0c2a8e-missing", headers={"x-user-id": "walker-1"})
    client.get("/v1/no-such-endpoint")
    paths = [item["path"] for item in app.state.api_metrics.snapshot()]
    body = client.get("/metrics").text

    assert paths == ["/v1/contacts/{contact_id}", "unmatched"]
    assert "4f0c2a8e-missing" not in body


def test_prometheus_metrics_endpoint_exposes_http_metrics() -> None:
    app = create_app()
    client = TestClient(app)

    client.get("/healthz")
    response = client.get("/metrics")
    body = response.text

    assert response.status_code == 200
    assert "guardian_http_requests_total" in body
    assert "guardian_http_request_duration_ms" in body


def test_prometheus_collector_counts_domain_events() -> None:
    collector = PrometheusApiMetricsCollector()

    collector.record_zone_alert("high")
    collector.record_zone_alert("high")
    collector.record_zone_alert("moderate")
    collector.record_route_fallback()
    body = collector.render()

    assert 'guardian_zone_alerts_total{level="high"} 2.0' in body
    assert 'guardian_zone_alerts_total{level="moderate"} 1.0' in body
    assert "guardian_route_fallbacks_total 1.0" in body

from __future__ import annotations

from datetime import datetime


def test_health_ok(client) -> None:
    res = client.get("/health")
    assert res.status_code == 200

    payload = res.json()
    assert payload["status"] == "healthy"
    assert payload["timestamp"].endswith("Z")
    datetime.fromisoformat(payload["timestamp"].replace("Z", "+00:00"))


def test_unknown_route_returns_404(client) -> None:
    res = client.get("/api/nope")
    assert res.status_code == 404


def test_metrics_exposes_upstream_series(client) -> None:
    res = client.get("/metrics")
    assert res.status_code == 200
    assert "http_requests_total" in res.text
    assert "llm_upstream_requests_total" in res.text

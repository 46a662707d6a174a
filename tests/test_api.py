"""
Tests for the HTTP surface.

Verifies:
- /api/alternatives returns a ranked discovery result
- /api/alternatives/stream emits progress events then a complete event
- /health lists configured providers
- /metrics exposes Prometheus text
"""

import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from discovery.aggregator import AlternativeAggregator
from discovery.api import create_app, get_aggregator, get_providers
from discovery.providers import BraveSearchProvider, OpenAISuggestionProvider
from fakes import FakeProvider, make_candidate

EXPENSE = {
    "id": "exp-stream",
    "name": "Netflix Premium",
    "description": "Streaming subscription",
    "category": "Entertainment",
    "amount": 25.0,
    "frequency": "Monthly",
}


@pytest.fixture
def client():
    with patch("discovery.api.setup_logging"):
        app = create_app()

    providers = {
        "openai": FakeProvider(
            "openai",
            [
                make_candidate("o-0", "Stan Basic", 12.0, 13.0, confidence=80),
                make_candidate("o-1", "Binge Standard", 18.0, 7.0, confidence=80),
            ],
        ),
        "brave": FakeProvider("brave", error=RuntimeError("boom")),
    }
    app.dependency_overrides[get_aggregator] = lambda: AlternativeAggregator(providers, timeout_seconds=1.0)
    app.dependency_overrides[get_providers] = lambda: {
        "openai": OpenAISuggestionProvider("sk-test"),
        "brave": BraveSearchProvider(None),
    }
    return TestClient(app)


def _sse_events(body: str):
    return [json.loads(line[len("data: "):]) for line in body.splitlines() if line.startswith("data: ")]


def test_discover_returns_ranked_result(client):
    response = client.post(
        "/api/alternatives",
        json={"expense": EXPENSE, "preferences": {"sort_preference": "price"}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["outcome"] == "ranked"
    assert [a["id"] for a in data["alternatives"]] == ["o-0", "o-1"]
    assert data["best"]["id"] == "o-0"
    statuses = {s["provider_id"]: s["status"] for s in data["provider_statuses"]}
    assert statuses == {"openai": "ok", "brave": "error"}


def test_discover_rejects_invalid_expense(client):
    bad = dict(EXPENSE, amount=-5)
    response = client.post("/api/alternatives", json={"expense": bad})
    assert response.status_code == 422


def test_per_unit_expense_requires_quantity(client):
    bad = dict(EXPENSE, frequency="Per Unit")
    response = client.post("/api/alternatives", json={"expense": bad})
    assert response.status_code == 422


def test_stream_emits_progress_then_complete(client):
    response = client.post("/api/alternatives/stream", json={"expense": EXPENSE})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _sse_events(response.text)
    final = events[-1]
    assert final["event"] == "complete"
    assert final["result"]["outcome"] == "ranked"

    progress = events[:-1]
    assert {e["source"] for e in progress} == {"openai", "brave"}
    terminal = {e["source"]: e["status"] for e in progress if e["status"] in ("completed", "error", "no-results")}
    assert terminal == {"openai": "completed", "brave": "error"}


def test_health_lists_configured_providers(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "providers": ["openai"]}


def test_metrics_exposes_prometheus_text(client):
    client.post("/api/alternatives", json={"expense": EXPENSE})
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "discovery_runs_total" in response.text
    assert "discovery_provider_duration_seconds" in response.text


def test_blank_expense_name_maps_to_422(client):
    response = client.post("/api/alternatives", json={"expense": dict(EXPENSE, name="  ")})
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


def test_missing_providers_maps_to_503():
    with patch("discovery.api.setup_logging"):
        app = create_app()
    app.dependency_overrides[get_aggregator] = lambda: AlternativeAggregator({})

    response = TestClient(app).post("/api/alternatives", json={"expense": EXPENSE})
    assert response.status_code == 503


def test_stream_ends_with_error_event_for_blank_name(client):
    response = client.post("/api/alternatives/stream", json={"expense": dict(EXPENSE, name="   ")})

    assert response.status_code == 200
    events = _sse_events(response.text)
    assert events == [
        {"event": "error", "error": "ValidationError", "message": "Expense name is empty",
         "detail": {"expense_id": "exp-stream"}}
    ]


def test_stream_ends_with_error_event_without_providers():
    with patch("discovery.api.setup_logging"):
        app = create_app()
    app.dependency_overrides[get_aggregator] = lambda: AlternativeAggregator({})

    response = TestClient(app).post("/api/alternatives/stream", json={"expense": EXPENSE})

    events = _sse_events(response.text)
    assert len(events) == 1
    assert events[0]["event"] == "error"
    assert events[0]["error"] == "ConfigurationError"

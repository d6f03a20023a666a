"""Tool server endpoints over a seeded in-memory store."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import TODAY
from mcp_server import app, get_snapshot_store, get_today
from seed_db import seed_demo
from storage import MemoryStore


@pytest.fixture
def client():
    store = MemoryStore()
    assert seed_demo(store, today=TODAY) is True
    app.dependency_overrides[get_snapshot_store] = lambda: store
    app.dependency_overrides[get_today] = lambda: TODAY
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_seed_is_skipped_when_ledger_exists():
    store = MemoryStore()
    seed_demo(store, today=TODAY)

    assert seed_demo(store, today=TODAY) is False


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_portfolios(client):
    payload = client.get("/portfolios").json()

    assert len(payload["portfolios"]) == 1
    assert payload["active_id"] == payload["portfolios"][0]["id"]
    assert payload["portfolios"][0]["transactions"] == 4
    assert payload["portfolios"][0]["debts"] == 1


def test_active_stats(client):
    response = client.get("/portfolios/active/stats")

    assert response.status_code == 200
    payload = response.json()
    assert payload["totals"] == {"income": 5000, "expense": 1800, "balance": 3200, "total_debt": 11400}
    assert [m["month"] for m in payload["monthly_flow"]][-1] == "2024-03"
    assert payload["monthly_flow"][-1]["expense"] == 1800
    assert payload["categories"][0] == {"name": "Food", "value": 850}


def test_generate_schedule(client):
    response = client.post("/tools/generate_schedule", json={"total": 12000, "interest": 0, "payment": 1000})

    assert response.status_code == 200
    payload = response.json()
    assert payload["months"] == 12
    assert payload["total_interest"] == 0
    assert payload["rows"][-1]["remaining"] == 0


def test_generate_schedule_rejection(client):
    response = client.post("/tools/generate_schedule", json={"total": 1000, "interest": 24, "payment": 15})

    assert response.status_code == 422
    assert response.json()["detail"] == "payment does not cover interest"


def test_generate_schedule_validates_request(client):
    response = client.post("/tools/generate_schedule", json={"total": -5, "payment": 10})

    assert response.status_code == 422


def test_active_reminders(client):
    payload = client.get("/reminders/active").json()

    assert [(r["reminder"]["name"], r["days_until"], r["urgency"]) for r in payload] == [("Credit card", 2, "upcoming")]
    assert payload[0]["reminder"]["dueDate"] == "2024-03-17"


def test_reminder_statuses(client):
    payload = client.get("/reminders/statuses").json()

    assert [(r["reminder"]["name"], r["urgency"]) for r in payload] == [("Credit card", "upcoming"), ("Internet", "quiet")]

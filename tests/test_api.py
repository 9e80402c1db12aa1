"""
Tests for the HTTP surface in `asfmonitor/routes.py`.

Covers:
- Reference data validation (breed bands, checklist weights)
- Observation recording gated by the monitoring windows
- Risk, timing, report, dashboard and alert views
- Neutral Low result when a pig's breed record is gone
"""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from asfmonitor.models import Breed

BREED = {
    "name": "Large White",
    "min_temp_adult": 38.0,
    "max_temp_adult": 39.5,
    "min_temp_young": 38.5,
    "max_temp_young": 40.0,
}


@pytest.fixture
def pig_id(client: TestClient) -> int:
    breed = client.post("/api/v1/breeds", json=BREED).json()
    for symptom, weight in [("High fever", 5), ("Loss of appetite", 3)]:
        r = client.post(
            "/api/v1/checklist",
            json={"symptom": symptom, "risk_weight": weight, "treatment_recommendation": f"Treat {symptom.lower()} now."},
        )
        assert r.status_code == 201
    r = client.post(
        "/api/v1/pigs",
        json={"name": "Babe", "age": 14, "weight": 120.5, "category": "Adult", "breed_id": breed["id"]},
    )
    assert r.status_code == 201
    return r.json()["id"]


def _observe(client: TestClient, pig_id: int, temperature: float, checklist: dict | None = None):
    return client.post(
        f"/api/v1/pigs/{pig_id}/observations",
        json={"temperature": temperature, "checklist": checklist or {}},
    )


def test_healthz(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"ok": True}


def test_breed_band_must_be_ordered(client: TestClient) -> None:
    r = client.post("/api/v1/breeds", json={**BREED, "min_temp_adult": 40.0})
    assert r.status_code == 422


def test_checklist_weight_bounds(client: TestClient) -> None:
    r = client.post(
        "/api/v1/checklist",
        json={"symptom": "Cough", "risk_weight": 6, "treatment_recommendation": "Keep the pen ventilated."},
    )
    assert r.status_code == 422


def test_pig_requires_known_breed(client: TestClient) -> None:
    r = client.post(
        "/api/v1/pigs",
        json={"name": "Ghost", "age": 3, "weight": 20.0, "category": "Young", "breed_id": 99},
    )
    assert r.status_code == 404


def test_unknown_pig_is_404(client: TestClient) -> None:
    assert client.get("/api/v1/pigs/42/risk").status_code == 404
    assert client.get("/api/v1/pigs/42/timing").status_code == 404


def test_two_checks_per_day(client: TestClient, clock, pig_id: int) -> None:
    r = _observe(client, pig_id, 39.0)
    assert r.status_code == 201
    assert r.json()["date"] == "2026-10-18"

    r = _observe(client, pig_id, 39.1)
    assert r.status_code == 409
    assert r.json()["detail"]["state"] == "WAITING_SECOND_WINDOW"
    assert r.json()["detail"]["next_monitoring_time"] == "15:00"

    clock.set(15)
    assert _observe(client, pig_id, 39.2).status_code == 201

    clock.set(16)
    r = _observe(client, pig_id, 39.2)
    assert r.status_code == 409
    assert r.json()["detail"]["state"] == "AFTER_DAY_END"

    clock.set(8, day=19)
    assert _observe(client, pig_id, 39.2).status_code == 201


def test_before_window_rejected(client: TestClient, clock, pig_id: int) -> None:
    clock.set(7)
    r = client.get(f"/api/v1/pigs/{pig_id}/timing").json()

    assert r["can_monitor"] is False
    assert r["state"] == "BEFORE_WINDOW"
    assert r["time_remaining_text"] == "1h 0m"
    assert _observe(client, pig_id, 39.0).status_code == 409


def test_unknown_checklist_item_rejected(client: TestClient, pig_id: int) -> None:
    assert _observe(client, pig_id, 39.0, {"99": True}).status_code == 422


def test_risk_uses_newest_session(client: TestClient, clock, pig_id: int) -> None:
    assert client.get(f"/api/v1/pigs/{pig_id}/risk").json()["risk_level"] == "Low"

    _observe(client, pig_id, 39.0)
    clock.set(15)
    _observe(client, pig_id, 41.0, {"1": True, "2": False})

    risk = client.get(f"/api/v1/pigs/{pig_id}/risk").json()
    assert risk["temperature_score"] == 25
    assert risk["symptom_score"] == 50
    assert risk["progression_score"] == 0
    assert risk["total_score"] == 75
    assert risk["risk_level"] == "High"
    assert risk["color"] == "#FF453A"

    observations = client.get(f"/api/v1/pigs/{pig_id}/observations").json()
    assert [o["temperature"] for o in observations] == [41.0, 39.0]
    assert [s["symptom"] for s in observations[0]["symptoms"]] == ["High fever"]


def test_timing_reports_last_check(client: TestClient, clock, pig_id: int) -> None:
    clock.set(8, 30)
    _observe(client, pig_id, 39.0)
    clock.set(14)

    r = client.get(f"/api/v1/pigs/{pig_id}/timing").json()
    assert r["last_monitored_time"] == "08:30"
    assert r["next_monitoring_time"] == "15:00"
    assert r["time_remaining_seconds"] == 3600


def test_missing_breed_gives_neutral_low(client: TestClient, db_session: Session, pig_id: int) -> None:
    _observe(client, pig_id, 41.5, {"1": True})
    db_session.query(Breed).delete()
    db_session.commit()

    risk = client.get(f"/api/v1/pigs/{pig_id}/risk").json()
    assert risk["breed_missing"] is True
    assert risk["risk_level"] == "Low"
    assert risk["total_score"] == 0


def test_report(client: TestClient, clock, pig_id: int) -> None:
    clock.set(9, day=17)
    _observe(client, pig_id, 39.0, {"2": True})
    clock.set(9)
    _observe(client, pig_id, 40.5, {"1": True})

    report = client.get(f"/api/v1/pigs/{pig_id}/report").json()

    assert report["latest_temperature"] == 40.5
    assert report["symptom_details"] == [{"symptom": "High fever", "treatment": "Treat high fever now."}]
    assert report["symptoms_count"] == 1
    assert report["has_temperature_data"] is True

    history = report["history"]
    assert len(history) == 7
    assert history[-1]["date"] == date(2026, 10, 18).isoformat()
    assert history[-1]["abnormal"] is True
    assert history[-1]["symptom_count"] == 1
    assert history[-2]["temperature"] == 39.0
    assert history[-2]["abnormal"] is False
    assert history[0]["temperature"] is None


def test_dashboard_and_alerts(client: TestClient, clock, pig_id: int) -> None:
    breed_id = client.get("/api/v1/breeds").json()[0]["id"]
    other = client.post(
        "/api/v1/pigs",
        json={"name": "Wilbur", "age": 2, "weight": 15.0, "category": "Young", "breed_id": breed_id},
    ).json()

    _observe(client, pig_id, 41.0, {"1": True})

    dash = client.get("/api/v1/dashboard").json()
    assert dash["total_pigs"] == 2
    assert dash["monitored_count"] == 1
    assert dash["not_monitored_count"] == 1
    assert dash["alerts_count"] == 1
    # Wilbur can still be checked, Babe waits for the second window
    assert [p["id"] for p in dash["pigs"]] == [other["id"], pig_id]

    alerts = client.get("/api/v1/alerts").json()
    assert len(alerts) == 1
    assert alerts[0]["type"] == "high-risk"
    assert alerts[0]["body"] == "1 pig showing high risk symptoms: Babe"


def test_monitoring_time_settings(client: TestClient, clock, pig_id: int) -> None:
    r = client.get("/api/v1/settings/monitoring-time").json()
    assert r["monitoring_start_time"] == "08:00"
    assert r["timezone"] == "Asia/Singapore"

    assert client.put("/api/v1/settings/monitoring-time", json={"monitoring_start_time": "25:00"}).status_code == 422

    r = client.put("/api/v1/settings/monitoring-time", json={"monitoring_start_time": "10:00"})
    assert r.status_code == 200
    assert r.json()["monitoring_start_time"] == "10:00"

    timing = client.get(f"/api/v1/pigs/{pig_id}/timing").json()
    assert timing["state"] == "BEFORE_WINDOW"
    assert timing["next_monitoring_time"] == "10:00"


def test_report_lists_treatments_without_breed(client: TestClient, db_session: Session, pig_id: int) -> None:
    _observe(client, pig_id, 41.0, {"1": True, "2": False})
    db_session.query(Breed).delete()
    db_session.commit()

    report = client.get(f"/api/v1/pigs/{pig_id}/report").json()

    assert report["risk"]["breed_missing"] is True
    assert report["risk"]["risk_level"] == "Low"
    assert report["symptom_details"] == [{"symptom": "High fever", "treatment": "Treat high fever now."}]
    assert report["symptoms_count"] == 1
    assert report["history"][-1]["abnormal"] is False


def test_minimum_gap_counts_seconds(client: TestClient, clock, pig_id: int) -> None:
    clock.set(11, 30, second=50)
    assert _observe(client, pig_id, 39.0).status_code == 201

    clock.set(15, 30)
    r = _observe(client, pig_id, 39.0)
    assert r.status_code == 409
    assert r.json()["detail"]["next_monitoring_time"] == "15:31"

    timing = client.get(f"/api/v1/pigs/{pig_id}/timing").json()
    assert timing["last_monitored_time"] == "11:31"

    clock.set(15, 31)
    assert _observe(client, pig_id, 39.0).status_code == 201

from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from handover.application import get_job_store_service, reset_job_store


@pytest.fixture(autouse=True)
def reset_state():
    reset_job_store()
    yield
    reset_job_store()


@pytest.fixture()
def client():
    from handover.app import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def _job(job_id: str, when: datetime, department: str = "Process", **extra) -> dict:
    return {"id": job_id, "date": when.isoformat(), "department": department, "description": job_id, **extra}


def _completed(job_id: str, when: datetime, department: str = "Process") -> dict:
    return _job(job_id, when, department, jobComplete=True, sapComplete=True, completedAt=when.isoformat())


def test_jobs_start_empty(client):
    response = client.get("/api/jobs")
    assert response.status_code == 200
    assert response.json() == {"activeJobs": [], "completedJobs": []}
    assert response.headers["access-control-allow-origin"] == "*"


def test_jobs_save_then_load_latest(client):
    first = {"activeJobs": [_job("a1", datetime(2025, 6, 22, 10))], "completedJobs": []}
    second = {"activeJobs": [_job("a2", datetime(2025, 6, 22, 11))], "completedJobs": []}

    response = client.post("/api/jobs", json=first)
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["id"]
    assert body["created_at"]

    client.post("/api/jobs", json=second)
    loaded = client.get("/api/jobs").json()
    assert [job["id"] for job in loaded["activeJobs"]] == ["a2"]
    assert loaded["activeJobs"][0]["jobComplete"] is False


def test_jobs_history_is_pruned(client):
    for index in range(105):
        payload = {"activeJobs": [_job(f"a{index}", datetime(2025, 6, 22, 10))], "completedJobs": []}
        assert client.post("/api/jobs", json=payload).status_code == 200

    service = get_job_store_service()
    assert service.history_size() == 100
    assert client.get("/api/jobs").json()["activeJobs"][0]["id"] == "a104"


def test_jobs_rejects_invalid_payload(client):
    response = client.post("/api/jobs", json={"activeJobs": [{"id": "x"}]})
    assert response.status_code == 400


def test_items_upsert_and_newest_first(client):
    assert client.get("/api/items").json() == []

    client.post("/api/items", json={"id": "first", "data": {"value": 1}})
    client.post("/api/items", json={"note": "no id"})
    client.post("/api/items", json={"id": "first", "data": {"value": 2}})

    items = client.get("/api/items").json()
    assert len(items) == 2
    assert items[0]["id"] == "first"
    assert items[0]["data"] == {"value": 2}
    assert items[1]["data"] == {"note": "no id"}
    assert items[0]["created_at"] > items[1]["created_at"]


def test_items_rejects_non_string_id(client):
    response = client.post("/api/items", json={"id": 12, "data": {}})
    assert response.status_code == 400


@pytest.mark.parametrize("path", ["/api/jobs", "/api/items"])
def test_preflight_headers(client, path):
    response = client.options(
        path,
        headers={
            "Origin": "http://board.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"
    assert response.headers["access-control-allow-headers"] == "content-type"


def test_cors_headers_on_every_response(client):
    for response in (
        client.get("/api/metrics/monthly", headers={"Origin": "http://board.example"}),
        client.put("/api/jobs", json={}),
        client.options("/api/items"),
    ):
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"


@pytest.mark.parametrize("path", ["/api/jobs", "/api/items"])
def test_other_methods_not_allowed(client, path):
    assert client.put(path, json={}).status_code == 405
    assert client.delete(path).status_code == 405


def test_handover_modes_and_department_filter(client):
    now = datetime.now()
    payload = {
        "activeJobs": [
            _job("recent", now - timedelta(hours=1)),
            _job("yesterday", now - timedelta(hours=30), department="Fruit"),
            _job("old", now - timedelta(days=10)),
        ],
        "completedJobs": [_completed("closed", now - timedelta(hours=2))],
    }
    client.post("/api/jobs", json=payload)

    small = client.get("/api/handover").json()
    assert small["hours"] == 12
    assert [item["id"] for item in small["items"]] == ["recent", "closed"]
    assert small["items"][1]["status"] == "closed"

    large = client.get("/api/handover", params={"mode": "large"}).json()
    assert [item["id"] for item in large["items"]] == ["recent", "closed", "yesterday"]

    fruit = client.get("/api/handover", params={"mode": "large", "department": "Fruit"}).json()
    assert [item["id"] for item in fruit["items"]] == ["yesterday"]

    assert client.get("/api/handover", params={"mode": "huge"}).status_code == 400


def test_monthly_metrics(client):
    payload = {
        "activeJobs": [],
        "completedJobs": [
            _completed("c1", datetime(2025, 5, 10, 9)),
            _completed("c2", datetime(2025, 6, 10, 9)),
            _completed("c3", datetime(2025, 6, 11, 9), department="Fruit"),
        ],
    }
    client.post("/api/jobs", json=payload)

    body = client.get("/api/metrics/monthly").json()
    assert body["total"] == 3
    assert body["departments"] == ["Fruit", "Process"]
    assert body["items"] == [
        {"month": "2025-05", "label": "May 2025", "Fruit": 0, "Process": 1},
        {"month": "2025-06", "label": "Jun 2025", "Fruit": 1, "Process": 1},
    ]


def test_shift_metrics_use_configured_patterns(client):
    payload = {
        "activeJobs": [],
        "completedJobs": [
            _completed("c1", datetime(2025, 6, 22, 10)),
            _completed("c2", datetime(2025, 6, 23, 2)),
        ],
    }
    client.post("/api/jobs", json=payload)

    body = client.get("/api/metrics/shifts").json()
    assert len(body["patterns"]) == 4
    assert [(row["pattern_id"], row["phase"], row["day_key"]) for row in body["items"]] == [
        ("1", "day", "2025-06-22"),
        ("3", "night", "2025-06-22"),
    ]


def test_shift_patterns_and_blocks(client):
    patterns = client.get("/api/shifts/patterns").json()["items"]
    assert [pattern["id"] for pattern in patterns] == ["1", "2", "3", "4"]
    assert patterns[0]["referenceDate"] == "2025-06-22"

    blocks = client.get("/api/shifts/blocks", params={"patternStart": "2025-06-22", "shift": "nights"}).json()
    assert blocks["patternStart"] == "2025-06-22"
    assert blocks["items"]
    assert all(item["shift"] == "nights" for item in blocks["items"])

    assert client.get("/api/shifts/blocks", params={"patternStart": "2025-06-22", "shift": "x"}).status_code == 400


def test_export_then_import(client):
    payload = {
        "activeJobs": [_job("a1", datetime(2025, 6, 22, 10))],
        "completedJobs": [_completed("c1", datetime(2025, 6, 21, 10))],
    }
    client.post("/api/jobs", json=payload)

    exported = client.get("/api/export")
    assert exported.status_code == 200
    assert "job-log-backup-" in exported.headers["content-disposition"]
    backup = exported.json()
    assert "exportedAt" in backup

    client.post("/api/jobs", json={"activeJobs": [], "completedJobs": []})
    restored = client.post("/api/import", content=json.dumps(backup))
    assert restored.status_code == 200
    assert restored.json()["activeJobs"] == 1
    assert restored.json()["completedJobs"] == 1
    assert client.get("/api/jobs").json()["completedJobs"][0]["id"] == "c1"


def test_import_merge_and_rejection(client):
    client.post("/api/jobs", json={"activeJobs": [], "completedJobs": [_completed("c1", datetime(2025, 6, 21, 10))]})

    extra = {"completedJobs": [_completed("c2", datetime(2025, 6, 22, 10))]}
    merged = client.post("/api/import", params={"merge": "true"}, content=json.dumps(extra))
    assert merged.json()["completedJobs"] == 2

    before = client.get("/api/jobs").json()
    rejected = client.post("/api/import", content="not json")
    assert rejected.status_code == 400
    assert client.get("/api/jobs").json() == before


def test_completed_csv_export(client):
    client.post("/api/jobs", json={"activeJobs": [], "completedJobs": [_completed("c1", datetime(2025, 6, 21, 10))]})
    response = client.get("/api/export.csv")
    assert response.status_code == 200
    lines = response.text.strip().splitlines()
    assert lines[0] == "id,date,completedAt,department,jobNumber,description,resolution,jobComplete,sapComplete"
    assert lines[1].startswith("c1,2025-06-21T10:00:00")


def test_block_jobs_completed_search_and_config(client):
    payload = {
        "activeJobs": [
            _job("day-job", datetime(2025, 6, 23, 9)),
            _job("night-job", datetime(2025, 6, 24, 2)),
        ],
        "completedJobs": [_completed("gearbox", datetime(2025, 6, 22, 14), department="Fruit")],
    }
    client.post("/api/jobs", json=payload)

    params = {"patternStart": "2025-06-22", "blockStart": "2025-06-22", "shift": "days"}
    days = client.get("/api/shifts/blocks/jobs", params=params).json()
    assert days["label"] == "22/06 - 25/06"
    assert [item["id"] for item in days["items"]] == ["day-job", "gearbox"]

    nights = client.get("/api/shifts/blocks/jobs", params={**params, "shift": "nights"}).json()
    assert [item["id"] for item in nights["items"]] == ["night-job"]

    off = client.get("/api/shifts/blocks/jobs", params={**params, "blockStart": "2025-06-27"})
    assert off.status_code == 400

    found = client.get("/api/completed", params={"search": "gear", "department": "Fruit"}).json()
    assert found["total"] == 1
    assert [item["id"] for item in found["items"]] == ["gearbox"]
    assert client.get("/api/completed", params={"department": "Process"}).json()["items"] == []

    config = client.get("/api/config").json()
    assert config["departments"][0] == "Process"
    assert config["flagPresets"][0]["priorityColor"] == "red"
    assert len(config["shiftPatterns"]) == 4

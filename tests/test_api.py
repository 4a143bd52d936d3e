"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from batchmigrate.api.main import app
from batchmigrate.api.storage import run_storage


@pytest.fixture
def client():
    run_storage.clear()
    yield TestClient(app)
    run_storage.clear()


@pytest.fixture
def csv_to_csv(tmp_path, people_csv):
    return {
        "source": {"file": {"type": "csv", "path": str(people_csv), "separator": ","}},
        "target": {"file": {"type": "csv", "path": str(tmp_path / "out.csv"), "separator": ";"}},
        "batch_size": 1,
    }


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_validate(client, csv_to_csv):
    response = client.post("/api/migrations/validate", json={"config": csv_to_csv})
    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["kind"] == "file_to_file"


def test_validate_reports_errors(client, csv_to_csv):
    del csv_to_csv["source"]["file"]["separator"]
    body = client.post("/api/migrations/validate", json={"config": csv_to_csv}).json()
    assert body["valid"] is False
    assert "separator" in body["errors"][0]


def test_run_and_history(client, tmp_path, csv_to_csv):
    response = client.post("/api/migrations/run", json={"config": csv_to_csv})
    assert response.status_code == 200
    run = response.json()
    assert run["status"] == "completed"
    assert run["records_migrated"] == 2
    assert run["batches_flushed"] == 2
    assert (tmp_path / "out.csv").read_text(encoding="utf-8") == "id;name\n1;a\n2;b\n"

    listing = client.get("/api/migrations").json()
    assert listing["total"] == 1
    assert listing["migrations"][0]["id"] == run["id"]

    fetched = client.get(f"/api/migrations/{run['id']}").json()
    assert fetched["columns"] == ["id", "name"]


def test_failed_run_is_recorded(client, tmp_path, people_csv):
    config = {
        "source": {"file": {"type": "csv", "path": str(people_csv), "separator": ","}},
        "target": {"db": {"type": "sqlite", "database": str(tmp_path / "t.db"), "table": "nope"}},
    }
    run = client.post("/api/migrations/run", json={"config": config}).json()
    assert run["status"] == "failed"
    assert "does not exist" in run["error"]
    assert client.get(f"/api/migrations/{run['id']}").status_code == 200


def test_run_rejects_bad_config(client):
    response = client.post("/api/migrations/run", json={"config": {"source": {}}})
    assert response.status_code == 400


def test_unknown_run(client):
    assert client.get("/api/migrations/does-not-exist").status_code == 404


def test_discover(client, tmp_path, source_db):
    config = {
        "source": {"db": {"url": source_db, "table": "people"}},
        "target": {"file": {"type": "csv", "path": str(tmp_path / "out.csv"), "separator": ","}},
    }
    response = client.post("/api/migrations/discover", json={"config": config})
    assert response.status_code == 200
    assert response.json() == [
        {"name": "id", "type_name": "INTEGER"},
        {"name": "name", "type_name": "VARCHAR(20)"},
        {"name": "score", "type_name": "REAL"},
    ]
    assert not (tmp_path / "out.csv").exists()


def test_discover_reports_unreadable_source(client, tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    config = {
        "source": {"file": {"type": "csv", "path": str(empty), "separator": ","}},
        "target": {"file": {"type": "csv", "path": str(tmp_path / "out.csv"), "separator": ","}},
    }
    response = client.post("/api/migrations/discover", json={"config": config})
    assert response.status_code == 422


def test_no_cross_origin_headers(client):
    response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers

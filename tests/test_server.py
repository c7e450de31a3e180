import pytest
from fastapi.testclient import TestClient

from news_aggregator.retrieval import RetrievalEngine
from news_aggregator.server import app, get_engine, get_registry


@pytest.fixture
def client(local_registry, tmp_path):
    storage = tmp_path / "snapshots"
    app.dependency_overrides[get_registry] = lambda: local_registry
    app.dependency_overrides[get_engine] = lambda: RetrievalEngine(
        local_registry, storage_dir=storage
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_list_sources(client):
    resp = client.get("/sources")
    assert resp.status_code == 200
    assert [s["name"] for s in resp.json()] == ["abc", "nbc", "usatoday"]


def test_source_lifecycle(client):
    created = client.post(
        "/sources", json={"name": "source1", "format": "xml", "endpoint": "https://source1.com"}
    )
    assert created.status_code == 201
    assert created.json() == {"name": "source1", "format": "xml", "endpoint": "https://source1.com"}

    updated = client.put("/sources/source1", json={"endpoint": "https://source1.com/rss"})
    assert updated.status_code == 200
    assert updated.json()["endpoint"] == "https://source1.com/rss"
    assert updated.json()["format"] == "xml"

    assert client.get("/sources/source1").status_code == 200
    assert client.delete("/sources/source1").status_code == 200
    assert client.get("/sources/source1").status_code == 404


def test_register_errors_map_to_status_codes(client):
    duplicate = client.post("/sources", json={"name": "abc", "format": "xml", "endpoint": "x"})
    assert duplicate.status_code == 409

    bad_format = client.post("/sources", json={"name": "new", "format": "yaml", "endpoint": "x"})
    assert bad_format.status_code == 400

    bad_name = client.post("/sources", json={"name": "x" * 21, "format": "xml", "endpoint": "x"})
    assert bad_name.status_code == 400

    assert client.delete("/sources/missing").status_code == 404


def test_update_requires_a_change(client):
    resp = client.put("/sources/abc", json={})
    assert resp.status_code == 400


def test_get_news_filters_live_sources(client):
    resp = client.get("/news", params={"keywords": "glide", "sources": "abc"})
    assert resp.status_code == 200
    body = resp.json()
    assert [a["title"] for a in body] == ["Hang glider crosses the Alps"]
    assert body[0]["publishedAt"] == "Sun, 19 May 2024 09:02:27 GMT"


def test_get_news_rejects_bad_dates(client):
    resp = client.get("/news", params={"date-from": "someday"})
    assert resp.status_code == 400


def test_get_news_from_snapshots_rejects_reversed_range(client):
    resp = client.get(
        "/news",
        params={"date-from": "2024-07-24", "date-end": "2024-07-23", "snapshots": "true"},
    )
    assert resp.status_code == 400


def test_get_news_reports_missing_snapshot(client):
    resp = client.get(
        "/news",
        params={"date-from": "2024-07-19", "date-end": "2024-07-19", "snapshots": "true"},
    )
    assert resp.status_code == 500

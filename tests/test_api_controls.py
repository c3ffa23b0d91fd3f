import pytest
from fastapi.testclient import TestClient

from location_suggest.api.app import app, health
from location_suggest.providers import arcgis, gazetteer
from location_suggest.providers.fixture import FIXTURE_DIR, FixtureProvider


@pytest.fixture
def client(monkeypatch):
    def fixture_providers():
        return (
            FixtureProvider(gazetteer.parse_response, FIXTURE_DIR / "gazetteer_responses.json"),
            FixtureProvider(
                arcgis.parse_response,
                FIXTURE_DIR / "arcgis_responses.json",
                empty={"candidates": []},
            ),
        )

    monkeypatch.setattr("location_suggest.engine.build_providers", fixture_providers)
    with TestClient(app) as c:
        yield c


def _create(client, control_id="map-1", **options):
    options.setdefault("debounceMs", 0)
    return client.post("/api/controls", json={"control_id": control_id, "options": options})


def test_routes_exist():
    paths = {route.path for route in app.routes}
    assert "/health" in paths
    assert "/api/controls" in paths
    assert "/api/controls/{control_id}/suggestions" in paths
    assert health() == {"status": "ok"}


def test_create_control(client):
    r = _create(client, states="48", maxSuggestions="25")
    assert r.status_code == 201
    body = r.json()
    assert body["control_id"] == "map-1"
    assert body["states"] == "48"
    assert body["max_suggestions"] == 25
    assert body["debounce_ms"] == 0

    assert _create(client).status_code == 409
    assert client.post("/api/controls", json={"control_id": ""}).status_code == 422
    assert client.get("/api/controls/map-1").json()["include"] == "gnis postal state"


def test_suggest_select_and_delete(client):
    _create(client)
    r = client.get("/api/controls/map-1/suggestions", params={"q": "austin tx"})
    assert r.status_code == 200
    fc = r.json()
    assert fc["type"] == "FeatureCollection"
    assert [f["properties"]["label"] for f in fc["features"]] == ["Austin (Travis, TX)"]

    r = client.post("/api/controls/map-1/select", json={"index": 0})
    assert r.status_code == 200
    assert r.json()["properties"]["state"] == "TX"
    assert client.get("/api/controls/map-1/selected").json()["feature"]["properties"]["name"] == "Austin"

    assert client.post("/api/controls/map-1/select", json={"index": 7}).status_code == 400

    assert client.delete("/api/controls/map-1").status_code == 200
    assert client.get("/api/controls/map-1/suggestions", params={"q": "austin"}).status_code == 404


def test_secondary_fallback_through_api(client):
    _create(client)
    fc = client.get("/api/controls/map-1/suggestions", params={"q": "zzyzx"}).json()
    assert [f["properties"]["type"] for f in fc["features"]] == [
        "Addresses and Other Suggestions",
        "Populated Place",
        "Water Features",
    ]
    assert all(f["properties"]["source"] == "esri-world" for f in fc["features"])


def test_coordinate_query_through_api(client):
    _create(client)
    fc = client.get("/api/controls/map-1/suggestions", params={"q": "44.96, -93.24"}).json()
    assert len(fc["features"]) == 1
    assert fc["features"][0]["properties"]["source"] == "latlon"
    assert fc["features"][0]["geometry"]["coordinates"] == [-93.24, 44.96]


def test_unknown_control_is_404(client):
    assert client.get("/api/controls/nope/suggestions", params={"q": "austin"}).status_code == 404
    assert client.post("/api/controls/nope/select", json={"index": 0}).status_code == 404
    assert client.get("/api/controls/nope/selected").status_code == 404
    assert client.delete("/api/controls/nope").status_code == 404

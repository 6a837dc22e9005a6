from starlette.testclient import TestClient

from harvesthub.api.app import app
from harvesthub.domain.models import Coordinate, FarmerCandidate, Located, Unlocated


def _stub_directory():
    return [
        FarmerCandidate(
            id="qc",
            name="Quezon City Greens",
            location=Located(coordinate=Coordinate(lat=14.6760, lon=121.0437), address="Diliman"),
            product_count=2,
        ),
        FarmerCandidate(
            id="taguig",
            name="Taguig Urban Farm",
            location=Located(coordinate=Coordinate(lat=14.5176, lon=121.0509)),
            product_count=10,
        ),
        FarmerCandidate(id="c", name="No Location Yet", location=Unlocated(), product_count=7),
    ]


def _patch_directory(monkeypatch):
    import harvesthub.api.routes as routes

    monkeypatch.setattr(routes, "_directory", _stub_directory)


def test_api_nearby_ranks_and_includes_debug_meta(monkeypatch):
    _patch_directory(monkeypatch)
    payload = {"buyer": {"lat": 14.5995, "lon": 120.9842}, "radius_km": 12, "sort_by": "products"}

    with TestClient(app) as c:
        resp = c.post("/api/farmers/nearby", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert [r["farmer"]["id"] for r in data["results"]] == ["taguig", "qc"]
    assert all(r["distance_km"] <= 12 for r in data["results"])
    assert data["query"]["sort_by"] == "product_count"
    assert [u["id"] for u in data["unlocated"]] == ["c"]
    assert data["meta"]["debug"]["request_id"]
    assert isinstance(data["meta"]["debug"]["api_ms"], int)


def test_api_nearby_small_radius_is_empty_not_error(monkeypatch):
    _patch_directory(monkeypatch)
    payload = {"buyer": {"lat": 14.5995, "lon": 120.9842}, "radius_km": 5}
    with TestClient(app) as c:
        resp = c.post("/api/farmers/nearby", json=payload)
    assert resp.status_code == 200
    assert resp.json()["results"] == []


def test_api_nearby_disallowed_override_is_400(monkeypatch):
    _patch_directory(monkeypatch)
    payload = {
        "buyer": {"lat": 14.5995, "lon": 120.9842},
        "settings_overrides": {"directory": {"path": "/etc/passwd"}},
    }
    with TestClient(app) as c:
        resp = c.post("/api/farmers/nearby", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_api_nearby_rejects_invalid_body(monkeypatch):
    _patch_directory(monkeypatch)
    with TestClient(app) as c:
        bad_sort = c.post("/api/farmers/nearby", json={"buyer": {"lat": 14.6, "lon": 121.0}, "sort_by": "price"})
        bad_lat = c.post("/api/farmers/nearby", json={"buyer": {"lat": 91, "lon": 121.0}})
    assert bad_sort.status_code == 422
    assert bad_lat.status_code == 422


def test_api_directory_failure_is_500(monkeypatch):
    import harvesthub.api.routes as routes

    def broken():
        raise RuntimeError("directory unavailable")

    monkeypatch.setattr(routes, "_directory", broken)
    with TestClient(app) as c:
        resp = c.post("/api/farmers/nearby", json={"buyer": {"lat": 14.6, "lon": 121.0}})
    assert resp.status_code == 500
    assert resp.json()["detail"]["code"] == "INTERNAL_ERROR"


def test_api_unlocated_and_geo_points(monkeypatch):
    _patch_directory(monkeypatch)
    with TestClient(app) as c:
        unlocated = c.get("/api/farmers/unlocated").json()
        points = c.get("/api/geo/farmers").json()
        filtered = c.get("/api/geo/farmers", params={"ids": "qc"}).json()

    assert unlocated == {
        "count": 1,
        "farmers": [{"id": "c", "name": "No Location Yet", "product_count": 7, "reason": "missing", "raw_text": None}],
    }
    assert [p["id"] for p in points["farmers"]] == ["qc", "taguig"]
    assert filtered["farmers"] == [
        {"id": "qc", "name": "Quezon City Greens", "lat": 14.676, "lon": 121.0437, "address": "Diliman", "product_count": 2}
    ]


def test_api_public_settings_hide_directory_source():
    with TestClient(app) as c:
        data = c.get("/api/settings").json()
    assert "directory" not in data
    assert data["locator"]["max_radius_km"] == 50

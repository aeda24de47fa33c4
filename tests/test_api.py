"""
Tests for the FastAPI endpoints.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import HEAT
from moviesearch.config import Settings
from moviesearch.context import build_context


@pytest.fixture
def ctx(catalog, store):
    return build_context(Settings(), store=store, catalog=catalog)


@pytest.fixture
def client(ctx):
    """Test client wired to the fake catalog and an in-memory store."""
    from moviesearch.main import app

    app.state.context = ctx
    with TestClient(app) as test_client:
        yield test_client
    app.state.context = None


def _register(client, email="ana@example.com"):
    return client.post("/api/auth/register", json={"name": "Ana", "email": email, "password": "pw"})


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestSearchEndpoints:

    def test_search_success(self, client):
        resp = client.post("/api/search", json={"query": "heist"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"]["has_searched"] is True
        assert data["state"]["results"][0]["title"] == "Heat"
        assert data["pagination"]["pages"] == [1, 2, 3]
        assert data["pagination"]["has_next"] is True

    def test_search_empty_query(self, client, catalog):
        resp = client.post("/api/search", json={"query": "   "})
        assert resp.status_code == 422
        assert catalog.calls == []

    def test_search_too_long_query(self, client):
        resp = client.post("/api/search", json={"query": "x" * 501})
        assert resp.status_code == 422

    def test_search_unavailable(self, client):
        client.post("/api/search", json={"query": "heist"})
        resp = client.post("/api/search", json={"query": "boom"})
        assert resp.status_code == 503
        state = client.get("/api/search").json()
        assert state["state"]["query"] == "heist"
        assert state["error"]

    def test_year_filter(self, client):
        client.post("/api/search", json={"query": "years"})
        resp = client.put("/api/search/year", json={"year": "2020"})
        assert [m["id"] for m in resp.json()["state"]["results"]] == ["a"]

    def test_bad_year(self, client):
        resp = client.put("/api/search/year", json={"year": "20"})
        assert resp.status_code == 422

    def test_sort_and_clear(self, client):
        client.post("/api/search", json={"query": "heist"})
        resp = client.put("/api/search/sort", json={"sort": "title-desc"})
        assert resp.json()["state"]["results"][0]["title"] == "Thief"
        resp = client.delete("/api/search/filters")
        assert resp.json()["state"]["sort"] == "none"
        assert resp.json()["state"]["results"][0]["title"] == "Heat"

    def test_page_out_of_range(self, client):
        client.post("/api/search", json={"query": "heist"})
        assert client.post("/api/search/page", json={"page": 4}).status_code == 422
        resp = client.post("/api/search/page", json={"page": 2})
        assert resp.json()["state"]["page"] == 2

    def test_global_search_and_home(self, client):
        resp = client.post("/api/search/global", json={"query": "heist"})
        assert resp.json()["state"]["query"] == "heist"
        resp = client.post("/api/home")
        assert resp.json()["state"]["has_searched"] is False

    def test_clear_keeps_filters(self, client, catalog):
        client.post("/api/search", json={"query": "heist"})
        client.put("/api/search/sort", json={"sort": "title-asc"})
        calls = len(catalog.calls)
        resp = client.post("/api/search/clear")
        assert resp.status_code == 200
        state = resp.json()["state"]
        assert state["has_searched"] is False
        assert state["results"] == []
        assert state["query"] == ""
        assert state["sort"] == "title-asc"
        assert len(catalog.calls) == calls

    def test_year_options(self, client):
        years = client.get("/api/search/years").json()
        assert years[-1] == 1900


class TestDetailNavigation:

    def test_round_trip(self, client):
        client.post("/api/search", json={"query": "heist"})
        client.put("/api/search/sort", json={"sort": "year-oldest"})
        before = client.get("/api/search").json()["state"]

        token = client.post(f"/api/movies/{HEAT.id}/open").json()["snapshot_token"]
        detail = client.get(f"/api/movies/{HEAT.id}", params={"snapshot": token}).json()
        assert detail["movie"]["detail"]["overview"] == "About Heat"
        assert detail["snapshot_token"] == token

        client.post("/api/home")
        resp = client.post(f"/api/search/restore/{token}").json()
        assert resp["restored"] is True
        assert resp["state"] == before

        again = client.post(f"/api/search/restore/{token}").json()
        assert again["restored"] is False

    def test_unknown_token_lands_on_empty_results(self, client):
        client.post("/api/search", json={"query": "heist"})
        resp = client.post("/api/search/restore/never-issued").json()
        assert resp["restored"] is False
        assert resp["state"]["has_searched"] is False
        assert resp["state"]["results"] == []

    def test_detail_not_found(self, client):
        resp = client.get("/api/movies/missing")
        assert resp.status_code == 404


class TestAccountsAndFavorites:

    def test_register_and_me(self, client):
        resp = _register(client)
        assert resp.status_code == 200
        assert "credential" not in resp.json()
        assert client.get("/api/auth/me").json()["email"] == "ana@example.com"

    def test_duplicate_register(self, client):
        _register(client)
        assert _register(client).status_code == 409

    def test_bad_login(self, client):
        _register(client)
        client.post("/api/auth/logout")
        resp = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "wrong"})
        assert resp.status_code == 401

    def test_favorites_require_login(self, client):
        assert client.get("/api/favorites").status_code == 401
        assert client.post("/api/favorites", json=HEAT.model_dump()).status_code == 401
        assert client.get(f"/api/favorites/{HEAT.id}").json()["is_favorite"] is False

    def test_favorites_flow(self, client):
        _register(client)
        resp = client.post("/api/favorites", json=HEAT.model_dump())
        assert resp.json() == {"movie_id": HEAT.id, "changed": True, "is_favorite": True}
        assert client.post("/api/favorites", json=HEAT.model_dump()).json()["changed"] is False

        listing = client.get("/api/favorites").json()
        assert listing["count"] == 1
        assert listing["favorites"][0]["title"] == "Heat"

        client.post("/api/auth/logout")
        client.post("/api/auth/login", json={"email": "ana@example.com", "password": "pw"})
        assert client.get(f"/api/favorites/{HEAT.id}").json()["is_favorite"] is True

        resp = client.delete(f"/api/favorites/{HEAT.id}")
        assert resp.json()["changed"] is True
        assert client.get("/api/favorites").json()["count"] == 0

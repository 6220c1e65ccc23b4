"""
HTTP API: feeds, votes, health and error mapping, against the in-memory store.

Run:
    pytest tests/test_api.py -v
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from feed_server.app import app, register_exception_handlers
from feed_server.config import ServerConfig
from feed_server.state import AppState, set_state
from recommender import RunCancelled, ScoringFailed


@pytest.fixture
def client(store):
    set_state(AppState(ServerConfig(), store=store))
    yield TestClient(app)
    set_state(None)


class TestFeedsApi:
    def test_generate_then_get_same_feed(self, client):
        created = client.post("/api/feeds/alice/paper", params={"date": "2026-03-01"})
        assert created.status_code == 200
        body = created.json()
        assert body["created"] is True
        assert body["date"] == "2026-03-01"
        assert [item["position"] for item in body["items"]] == [1, 2, 3, 4, 5]
        assert body["items"][0]["resource"]["id"] == "p-py-1"

        again = client.post("/api/feeds/alice/paper", params={"date": "2026-03-01"})
        assert again.json()["created"] is False
        assert [i["id"] for i in again.json()["items"]] == [i["id"] for i in body["items"]]

    def test_get_falls_back_to_latest_feed(self, client):
        client.post("/api/feeds/alice/paper", params={"date": "2026-03-01"})
        response = client.get("/api/feeds/alice/paper", params={"date": "2026-03-05"})
        assert response.status_code == 200
        body = response.json()
        assert body["requested_date"] == "2026-03-05"
        assert body["date"] == "2026-03-01"
        assert len(body["items"]) == 5

    def test_get_without_any_feed_is_empty(self, client):
        body = client.get("/api/feeds/alice/video", params={"date": "2026-03-01"}).json()
        assert body["date"] is None
        assert body["items"] == []

    def test_feed_type_aliases(self, client):
        assert client.get("/api/feeds/alice/blog-post").status_code == 200
        assert client.get("/api/feeds/alice/SOCIAL_MEDIA_POST").status_code == 200

    def test_unknown_feed_type_rejected(self, client):
        response = client.post("/api/feeds/alice/podcast")
        assert response.status_code == 400

    def test_history(self, client):
        client.post("/api/feeds/alice/paper", params={"date": "2026-03-01"})
        client.post("/api/feeds/alice/video", params={"date": "2026-03-01"})
        body = client.get("/api/feeds/alice/history", params={"feed_type": "video"}).json()
        assert body["feed_type"] == "video"
        assert {item["resource_id"] for item in body["items"]} == {"v-py-1", "v-cook-1"}

        assert client.get("/api/feeds/alice/history", params={"page_size": 500}).status_code == 422

    def test_storage_failure_maps_to_503(self, client, store):
        store.recommendations.failure.failing = True
        response = client.post("/api/feeds/alice/paper", params={"date": "2026-03-01"})
        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "storage_unavailable"
        assert set(body) == {"error", "detail"}


class TestVotesApi:
    def test_vote_upserts(self, client):
        first = client.post(
            "/api/votes", json={"user_id": "bob", "resource_id": "p-py-1", "vote_type": "upvote"}
        )
        assert first.status_code == 200
        second = client.post(
            "/api/votes", json={"user_id": "bob", "resource_id": "p-py-1", "vote_type": "downvote"}
        )
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["vote_type"] == "downvote"
        assert second.json()["updated_at"] is not None

        votes = client.get("/api/votes/bob").json()
        assert len(votes) == 1

    def test_vote_on_unknown_resource(self, client):
        response = client.post(
            "/api/votes", json={"user_id": "bob", "resource_id": "nope", "vote_type": "upvote"}
        )
        assert response.status_code == 404

    def test_invalid_vote_type(self, client):
        response = client.post(
            "/api/votes", json={"user_id": "bob", "resource_id": "p-py-1", "vote_type": "meh"}
        )
        assert response.status_code == 422


class TestRootApi:
    def test_root_and_health(self, client):
        root = client.get("/").json()
        assert root["store"] == "InMemoryStore"
        assert root["vector_store"] is None
        assert root["feed_size"] == 5

        health = client.get("/api/health").json()
        assert health["status"] == "healthy"
        assert health["vector_retrieval"] is False


class TestErrorBodies:
    @pytest.fixture
    def failing_client(self):
        failing = FastAPI()
        register_exception_handlers(failing)

        @failing.get("/scoring")
        async def _scoring():
            raise ScoringFailed("recency", ValueError("bad date"))

        @failing.get("/cancelled")
        async def _cancelled():
            raise RunCancelled("scoring")

        return TestClient(failing)

    def test_scoring_failure_names_scorer(self, failing_client):
        response = failing_client.get("/scoring")
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "scoring_failed"
        assert body["scorer"] == "recency"
        assert "bad date" in body["detail"]

    def test_cancelled_run_maps_to_409_without_scorer(self, failing_client):
        response = failing_client.get("/cancelled")
        assert response.status_code == 409
        assert response.json() == {
            "error": "run_cancelled",
            "detail": "Recommendation run cancelled before scoring",
        }

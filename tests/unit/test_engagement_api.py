"""
Tests for the Engagement API.

Runs the full app (lifespan included) against an in-memory store, a
controllable clock and a timer that never ticks on its own.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.core.entities import ArtworkEngagement

USER = {"X-User-Id": "user-1"}


@pytest.fixture
def client(rules, store, clock, timer_factory):
    app = create_app(rules=rules, store=store, clock=clock, timer_factory=timer_factory)
    with TestClient(app) as c:
        yield c


def view(client: TestClient, clock, artwork_id: str, ms: float, headers=USER) -> dict:
    client.post("/api/engagement/views/start", json={"artwork_id": artwork_id}, headers=headers)
    clock.advance(ms)
    resp = client.post(
        "/api/engagement/views/stop", json={"artwork_id": artwork_id}, headers=headers
    )
    assert resp.status_code == 200
    return resp.json()


class TestViews:
    def test_view_buffered_then_flushed(self, client, clock, store) -> None:
        body = view(client, clock, "art-1", 2500)
        assert body == {"ok": True, "tracked": True, "view_time_ms": 2500.0}
        assert store.get_aggregate("art-1") is None

        resp = client.post("/api/engagement/flush", headers=USER)
        assert resp.json() == {"ok": True, "flushed": 1, "pending": 0}

        aggregate = store.get_aggregate("art-1")
        assert aggregate.total_views == 1
        assert aggregate.total_view_time == 2500.0

    def test_short_view_ignored(self, client, clock) -> None:
        body = view(client, clock, "art-1", 400)
        assert body["view_time_ms"] == 0.0

        resp = client.post("/api/engagement/flush", headers=USER)
        assert resp.json()["flushed"] == 0

    def test_guest_not_tracked(self, client, clock, store) -> None:
        body = view(client, clock, "art-1", 2500, headers={})
        assert body["tracked"] is False
        assert body["view_time_ms"] == 0.0

    def test_blank_user_is_guest(self, client) -> None:
        resp = client.post(
            "/api/engagement/clicks",
            json={"artwork_id": "art-1"},
            headers={"X-User-Id": "   "},
        )
        assert resp.json()["tracked"] is False

    def test_empty_artwork_id_rejected(self, client) -> None:
        resp = client.post("/api/engagement/views/start", json={"artwork_id": ""}, headers=USER)
        assert resp.status_code == 422

    def test_shutdown_flushes_buffer(self, rules, store, clock, timer_factory) -> None:
        app = create_app(rules=rules, store=store, clock=clock, timer_factory=timer_factory)
        with TestClient(app) as c:
            view(c, clock, "art-1", 3000)

        assert store.get_aggregate("art-1").total_view_time == 3000.0


class TestInteractions:
    def test_like_unlike(self, client, store) -> None:
        like = {"artwork_id": "art-1", "liked": True}
        client.post("/api/engagement/likes", json=like, headers=USER)
        assert store.get_aggregate("art-1").total_likes == 1

        client.post("/api/engagement/likes", json={**like, "liked": False}, headers=USER)
        assert store.get_aggregate("art-1").total_likes == 0

    def test_like_requires_state(self, client) -> None:
        resp = client.post("/api/engagement/likes", json={"artwork_id": "art-1"}, headers=USER)
        assert resp.status_code == 422

    def test_click(self, client, store) -> None:
        resp = client.post("/api/engagement/clicks", json={"artwork_id": "art-1"}, headers=USER)

        assert resp.json() == {"ok": True, "tracked": True}
        aggregate = store.get_aggregate("art-1")
        assert aggregate.total_clicks == 1
        assert aggregate.engagement_score > 0


class TestReads:
    def test_get_engagement(self, client, store) -> None:
        store.put_aggregate(
            ArtworkEngagement(artwork_id="art-1", total_views=4, engagement_score=12.5)
        )

        resp = client.get("/api/engagement/art-1")

        assert resp.status_code == 200
        assert resp.json()["total_views"] == 4
        assert resp.json()["engagement_score"] == 12.5

    def test_get_missing_engagement(self, client) -> None:
        assert client.get("/api/engagement/unknown").status_code == 404

    def test_batch(self, client, store) -> None:
        ids = [f"art-{i}" for i in range(25)]
        for artwork_id in ids[:3]:
            store.put_aggregate(ArtworkEngagement(artwork_id=artwork_id, total_views=1))

        resp = client.post("/api/engagement/batch", json={"artwork_ids": ids})

        assert resp.status_code == 200
        assert sorted(resp.json()["engagements"]) == ["art-0", "art-1", "art-2"]

    def test_batch_too_many_ids(self, client) -> None:
        resp = client.post(
            "/api/engagement/batch",
            json={"artwork_ids": [str(i) for i in range(501)]},
        )
        assert resp.status_code == 422


def test_health(client) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"

from datetime import UTC, datetime, timedelta

import pytest

from src.adapters.memory_store import InMemoryEngagementStore
from src.components.engagement import EngagementTracker, compute_engagement_score
from src.components.scoring import (
    ScoringConfig,
    apply_diversity_boost,
    calculate_jitter,
    is_placeholder,
    rank_artworks,
    score_artworks,
    sort_by_score,
)
from src.core.entities import Artwork, ArtworkEngagement

NOW = datetime(2026, 1, 14, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def feed() -> list[Artwork]:
    """Mixed feed: repeat artists, shared images, placeholders, a spread of ages."""
    artworks = []
    for i in range(30):
        artworks.append(
            Artwork(
                id=f"art-{i:02d}",
                artist_id=f"artist-{i % 4}",
                created_at=NOW - timedelta(days=i * 0.7),
                image_url=f"https://cdn.example.com/{i % 6}.jpg" if i % 3 else None,
                tags=("_placeholder",) if i % 7 == 0 else ("painting",),
                likes=i * 3,
            )
        )
    return artworks


@pytest.fixture
def engagements(feed) -> dict[str, ArtworkEngagement]:
    return {
        a.id: ArtworkEngagement(artwork_id=a.id, engagement_score=float((i * 37) % 130))
        for i, a in enumerate(feed)
        if i % 2 == 0
    }


# --- R1: Placeholders ---
def test_R1_placeholders_zero_and_last(feed, engagements):
    """R1: Placeholders score 0/0 and never precede a real artwork."""
    scored = score_artworks(feed, engagements, {"artist-1"}, now=NOW)
    for item in scored:
        if is_placeholder(item):
            assert item.engagement_score == 0
            assert item.final_score == 0

    ordered = sort_by_score(scored)
    flags = [is_placeholder(item) for item in ordered]
    assert flags == sorted(flags)


def test_R1_configured_placeholder_tag(feed, engagements):
    """R1: A configured placeholder tag is the only one honoured."""
    config = ScoringConfig(placeholder_tag="painting")
    scored = sort_by_score(score_artworks(feed, engagements, now=NOW, config=config), config)

    flags = [is_placeholder(item, "painting") for item in scored]
    assert flags == sorted(flags)
    for item in scored:
        if is_placeholder(item, "painting"):
            assert item.final_score == 0
        else:
            assert item.final_score >= 1.0


# --- R2: Score floor and precision ---
def test_R2_final_score_floor(feed, engagements):
    """R2: Real artworks score at least 1.0, rounded to 3 decimals."""
    for item in score_artworks(feed, engagements, now=NOW):
        if not is_placeholder(item):
            assert item.final_score >= 1.0
            assert item.final_score == round(item.final_score, 3)


# --- R3: Determinism ---
def test_R3_ranking_is_deterministic(feed, engagements):
    """R3: Same inputs always produce the same feed."""
    first = rank_artworks(feed, engagements, {"artist-2"}, now=NOW)
    second = rank_artworks(list(feed), dict(engagements), {"artist-2"}, now=NOW)
    assert [(a.id, a.final_score) for a in first] == [(a.id, a.final_score) for a in second]


def test_R3_jitter_bounds():
    """R3: Jitter stays within +/-10%."""
    for artwork_id in ["", "a", "art-1", "x" * 500, "日本語"]:
        assert -0.1 <= calculate_jitter(artwork_id) <= 0.1


# --- R4: Inputs untouched ---
def test_R4_inputs_not_mutated(feed, engagements):
    """R4: Scoring and sorting return new lists; inputs keep their order and scores."""
    before = [a.id for a in feed]
    scored = score_artworks(feed, engagements, now=NOW)
    snapshot = [(a.id, a.final_score) for a in scored]

    sort_by_score(scored)
    apply_diversity_boost(scored)

    assert [a.id for a in feed] == before
    assert [(a.id, a.final_score) for a in scored] == snapshot


# --- R5: Diversity pass ---
def test_R5_diversity_keeps_walk_order_and_floor(feed, engagements):
    """R5: Penalties never reorder the walk and never push a score below 0.01."""
    scored = sort_by_score(score_artworks(feed, engagements, now=NOW))
    walk = sorted(scored, key=lambda a: a.final_score, reverse=True)

    result = apply_diversity_boost(scored)

    assert [a.id for a in result] == [a.id for a in walk]
    for original, adjusted in zip(walk, result, strict=True):
        assert adjusted.final_score <= max(original.final_score, 0.01)
        if adjusted.final_score != original.final_score:
            assert adjusted.final_score >= 0.01


# --- R6: Engagement score ---
@pytest.mark.parametrize("counter", ["likes", "clicks", "views"])
def test_R6_engagement_score_monotonic(counter):
    """R6: More engagement never lowers the score."""
    base = {"total_view_time": 5000.0, "total_views": 5, "total_likes": 2, "total_clicks": 1}
    key = f"total_{counter}"
    previous = compute_engagement_score(**base)
    for _ in range(20):
        base[key] += 1
        if counter == "views":
            # Keep average view time constant
            base["total_view_time"] += 1000.0
        current = compute_engagement_score(**base)
        assert current >= previous
        previous = current


# --- R7: View time is never lost ---
def test_R7_view_time_at_least_once():
    """R7: View time from failed flushes is retried until written."""

    class FakeClock:
        def __init__(self):
            self.now = NOW

        def now_utc(self):
            return self.now

    class FlakyStore(InMemoryEngagementStore):
        def __init__(self, **kwargs):
            super().__init__(**kwargs)
            self.failures_left = 2

        def increment_aggregate(self, artwork_id, increments):
            if self.failures_left > 0:
                self.failures_left -= 1
                raise ConnectionError("store unavailable")
            super().increment_aggregate(artwork_id, increments)

    class NoTimer:
        def __init__(self, callback, interval_seconds):
            pass

        def start(self):
            pass

        def stop(self):
            pass

        is_running = False

    clock = FakeClock()
    store = FlakyStore(clock=clock)
    tracker = EngagementTracker(store, "user-1", clock=clock, timer_factory=NoTimer)

    tracker.start_tracking("art-1")
    clock.now += timedelta(seconds=4)
    tracker.stop_tracking("art-1")

    flushed = [tracker.flush_pending_updates() for _ in range(3)]

    assert flushed == [0, 0, 1]
    assert store.get_aggregate("art-1").total_view_time == 4000.0
    assert tracker.pending_updates() == {}

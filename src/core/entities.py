"""
Domain entities for the discover feed.

- Artwork: content item shown in the feed (read-only here)
- ArtworkEngagement: per-artwork aggregate of all users' interactions
- UserEngagementRecord: per user x artwork record (dedupe / unlike support)
- ScoredArtwork: transient ranking output, never persisted
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

PLACEHOLDER_TAG = "_placeholder"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC (naive values are treated as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# --- Artwork (content-management owned) ---


class Artwork(BaseModel):
    """
    Content item as delivered by the content-management collaborator.

    The ranking code never mutates an Artwork; scored copies are built
    with model_copy.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    artist_id: str
    created_at: datetime
    image_url: str | None = None
    tags: tuple[str, ...] = ()
    likes: int = 0  # Denormalized like count
    title: str | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class ScoredArtwork(Artwork):
    """Artwork augmented with its ranking scores."""

    engagement_score: float = 0.0
    final_score: float = 0.0


# --- Engagement records (tracker owned) ---


class ArtworkEngagement(BaseModel):
    """
    Aggregate engagement statistics for one artwork.

    Invariants:
    - engagement_score is recomputed after every counter mutation
    - total_view_time is in milliseconds
    """

    artwork_id: str
    total_view_time: float = 0.0
    total_views: int = 0
    total_likes: int = 0
    total_clicks: int = 0
    engagement_score: float = 0.0
    last_updated: datetime = Field(default_factory=_utcnow)
    created_at: datetime = Field(default_factory=_utcnow)


class UserEngagementRecord(BaseModel):
    """One user's accumulated engagement with one artwork."""

    artwork_id: str
    user_id: str
    view_time: float = 0.0
    last_viewed_at: datetime | None = None
    liked: bool = False
    clicked: bool = False
    last_updated: datetime = Field(default_factory=_utcnow)

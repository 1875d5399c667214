from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.core.entities import Artwork, ArtworkEngagement


# --- Engagement ---
class ArtworkRef(BaseModel):
    artwork_id: str = Field(..., min_length=1, description="Artwork identifier")


class LikeRequest(ArtworkRef):
    liked: bool = Field(..., description="New like state (True = like, False = unlike)")


class OkResponse(BaseModel):
    ok: bool = True
    tracked: bool = True  # False for guests (no-op)


class StopViewResponse(OkResponse):
    view_time_ms: float = 0.0


class FlushResponse(BaseModel):
    ok: bool = True
    flushed: int
    pending: int


class BatchEngagementRequest(BaseModel):
    artwork_ids: list[str] = Field(..., max_length=500)


class BatchEngagementResponse(BaseModel):
    engagements: dict[str, ArtworkEngagement]


# --- Feed ---
class FeedRankRequest(BaseModel):
    items: list[Artwork]
    sort_by: str | None = None  # Defaults to rules.feed.default_sort
    followed_artist_ids: list[str] | None = None
    limit: int | None = None  # Defaults to rules.feed.default_limit


class FeedItem(BaseModel):
    id: str
    artist_id: str
    created_at: datetime
    image_url: str | None = None
    tags: list[str] = []
    likes: int = 0
    title: str | None = None
    updated_at: datetime | None = None
    engagement_score: float | None = None
    final_score: float | None = None


class FeedRankResponse(BaseModel):
    ok: bool = True
    items: list[FeedItem]
    strategy: str
    engagement_count: int
    total: int


class ErrorResponse(BaseModel):
    ok: bool = False
    errors: list[dict[str, Any]]

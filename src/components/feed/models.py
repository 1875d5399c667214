"""
Feed component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from src.core.entities import Artwork

SortMode = Literal["popular", "newest", "oldest", "likes", "recent"]
SORT_MODES: tuple[str, ...] = ("popular", "newest", "oldest", "likes", "recent")

# How the returned order was produced
Strategy = Literal["engagement", "newest", "oldest", "likes", "recent", "newest_fallback"]


@dataclass(frozen=True)
class FeedValidationError:
    """Feed request validation error."""

    code: str
    message: str
    field_name: str | None = None


@dataclass(frozen=True)
class RankFeedInput:
    """Input for ordering a feed."""

    artworks: tuple[Artwork, ...]
    sort_by: str = "popular"
    followed_artist_ids: frozenset[str] | None = None
    limit: int | None = None


@dataclass
class FeedResult:
    """
    Ordered feed.

    Items are ScoredArtwork instances when strategy == "engagement",
    plain Artworks otherwise.
    """

    items: list[Artwork]
    strategy: Strategy | None
    engagement_count: int = 0
    total: int = 0
    errors: list[FeedValidationError] = field(default_factory=list)
    success: bool = True

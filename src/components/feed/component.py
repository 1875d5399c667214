"""
Feed component - Discover feed ordering.

Chooses an ordering strategy for a list of artworks:
- popular: engagement ranking (score -> sort -> diversity boost) when any
  engagement data exists, newest-first otherwise
- newest / oldest: created_at order
- likes: denormalized like count, most liked first
- recent: last update first (created_at when never updated)

Placeholder artworks always follow real artworks. A failure inside the
engagement ranking degrades to newest-first instead of a broken feed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.adapters.clock import SystemClock
from src.components.scoring import (
    DEFAULT_DIVERSITY_CONFIG,
    DEFAULT_SCORING_CONFIG,
    DiversityConfig,
    ScoringConfig,
    is_placeholder,
    rank_artworks,
)
from src.core.entities import Artwork
from src.ports.clock import ClockPort

from .models import SORT_MODES, FeedResult, FeedValidationError, RankFeedInput, Strategy
from .ports import EngagementReaderPort

logger = logging.getLogger(__name__)

DEFAULT_MAX_LIMIT = 200


# --- Pure Functions (Functional Core) ---


def validate_feed_input(
    inp: RankFeedInput,
    max_limit: int = DEFAULT_MAX_LIMIT,
) -> list[FeedValidationError]:
    errors: list[FeedValidationError] = []

    if inp.sort_by not in SORT_MODES:
        errors.append(
            FeedValidationError(
                code="INVALID_SORT",
                message=f"sort_by must be one of {', '.join(SORT_MODES)}",
                field_name="sort_by",
            )
        )

    if inp.limit is not None and not 1 <= inp.limit <= max_limit:
        errors.append(
            FeedValidationError(
                code="INVALID_LIMIT",
                message=f"limit must be between 1 and {max_limit}",
                field_name="limit",
            )
        )

    return errors


def split_placeholders(
    artworks: Sequence[Artwork],
    tag: str = DEFAULT_SCORING_CONFIG.placeholder_tag,
) -> tuple[list[Artwork], list[Artwork]]:
    """Partition into (real, placeholders), preserving order."""
    real = [a for a in artworks if not is_placeholder(a, tag)]
    placeholders = [a for a in artworks if is_placeholder(a, tag)]
    return real, placeholders


def order_by_created(artworks: Sequence[Artwork], newest_first: bool = True) -> list[Artwork]:
    return sorted(artworks, key=lambda a: a.created_at, reverse=newest_first)


def order_by_likes(artworks: Sequence[Artwork]) -> list[Artwork]:
    return sorted(artworks, key=lambda a: a.likes, reverse=True)


def order_by_updated(artworks: Sequence[Artwork]) -> list[Artwork]:
    return sorted(artworks, key=lambda a: a.updated_at or a.created_at, reverse=True)


# --- Service ---


class FeedService:
    """Orders discover feeds; engagement data comes from an EngagementReaderPort."""

    def __init__(
        self,
        engagements: EngagementReaderPort,
        *,
        clock: ClockPort | None = None,
        scoring: ScoringConfig = DEFAULT_SCORING_CONFIG,
        diversity: DiversityConfig = DEFAULT_DIVERSITY_CONFIG,
        max_limit: int = DEFAULT_MAX_LIMIT,
    ) -> None:
        self._engagements = engagements
        self._clock: ClockPort = clock or SystemClock()
        self._scoring = scoring
        self._diversity = diversity
        self._max_limit = max_limit

    def rank(self, inp: RankFeedInput) -> FeedResult:
        """
        Order a feed.

        Args:
            inp: Artworks plus sort mode, followed artists and limit

        Returns:
            FeedResult; success False with errors for an invalid request
        """
        errors = validate_feed_input(inp, self._max_limit)
        if errors:
            return FeedResult(items=[], strategy=None, errors=errors, success=False)

        real, placeholders = split_placeholders(inp.artworks, self._scoring.placeholder_tag)
        engagement_count = 0
        strategy: Strategy

        if inp.sort_by == "popular":
            items, strategy, engagement_count = self._rank_popular(inp, real, placeholders)
        elif inp.sort_by == "oldest":
            items, strategy = order_by_created(real, newest_first=False) + placeholders, "oldest"
        elif inp.sort_by == "likes":
            items, strategy = order_by_likes(real) + placeholders, "likes"
        elif inp.sort_by == "recent":
            items, strategy = order_by_updated(real) + placeholders, "recent"
        else:
            items, strategy = order_by_created(real) + placeholders, "newest"

        if inp.limit is not None:
            items = items[: inp.limit]

        logger.info(
            "Ordered feed of %d artworks (%d returned) with strategy %s",
            len(inp.artworks),
            len(items),
            strategy,
        )
        return FeedResult(
            items=items,
            strategy=strategy,
            engagement_count=engagement_count,
            total=len(inp.artworks),
        )

    def _rank_popular(
        self,
        inp: RankFeedInput,
        real: list[Artwork],
        placeholders: list[Artwork],
    ) -> tuple[list[Artwork], Strategy, int]:
        engagements = self._engagements.get_artwork_engagements([a.id for a in real])
        fallback = order_by_created(real) + placeholders

        if not engagements:
            return fallback, "newest_fallback", 0

        try:
            ranked = rank_artworks(
                inp.artworks,
                engagements,
                inp.followed_artist_ids,
                now=self._clock.now_utc(),
                scoring=self._scoring,
                diversity=self._diversity,
            )
        except Exception:
            logger.exception("Engagement ranking failed, falling back to newest first")
            return fallback, "newest_fallback", len(engagements)

        return list(ranked), "engagement", len(engagements)

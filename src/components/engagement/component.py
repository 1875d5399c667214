"""
Engagement component - Aggregate scoring and batched reads.

The engagement score summarizes an artwork's aggregate counters:

    avg_view_time = total_view_time / total_views   (0 without views)
    normalized(x) = log10(x + 1) * 100              (+1 guards log10(0))
    score = 0.3 * n(avg_view_time) + 0.4 * n(likes)
          + 0.2 * n(clicks) + 0.1 * n(views)

Log scaling keeps viral outliers from dominating the feed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator, Sequence

from src.core.entities import ArtworkEngagement

from .models import DEFAULT_ENGAGEMENT_SCORE_CONFIG, EngagementScoreConfig
from .ports import EngagementStorePort

logger = logging.getLogger(__name__)


# --- Pure Functions (Functional Core) ---


def normalize_metric(value: float) -> float:
    """Log-scale a non-negative metric onto a ~0-100+ range."""
    return math.log10(max(0.0, value) + 1) * 100


def compute_engagement_score(
    total_view_time: float,
    total_views: int,
    total_likes: int,
    total_clicks: int,
    config: EngagementScoreConfig = DEFAULT_ENGAGEMENT_SCORE_CONFIG,
) -> float:
    """
    Weighted engagement score for an aggregate.

    Counters can dip below zero through unlikes; they are clamped to 0.

    Returns:
        Score rounded to config.precision decimals (2)
    """
    views = max(0, total_views)
    avg_view_time = max(0.0, total_view_time) / views if views > 0 else 0.0

    score = (
        normalize_metric(avg_view_time) * config.view_time_weight
        + normalize_metric(total_likes) * config.likes_weight
        + normalize_metric(total_clicks) * config.clicks_weight
        + normalize_metric(views) * config.views_weight
    )
    return round(score, config.precision)


def score_aggregate(
    aggregate: ArtworkEngagement,
    config: EngagementScoreConfig = DEFAULT_ENGAGEMENT_SCORE_CONFIG,
) -> float:
    return compute_engagement_score(
        aggregate.total_view_time,
        aggregate.total_views,
        aggregate.total_likes,
        aggregate.total_clicks,
        config,
    )


def chunk_ids(artwork_ids: Sequence[str], size: int) -> Iterator[list[str]]:
    """Split ids into consecutive chunks of at most `size`."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(artwork_ids), size):
        yield list(artwork_ids[start : start + size])


# --- Component Entry Points ---


def fetch_engagements(
    store: EngagementStorePort,
    artwork_ids: Sequence[str],
    chunk_size: int,
) -> dict[str, ArtworkEngagement]:
    """
    Batched aggregate read respecting the store's per-query id limit.

    Duplicate ids are queried once. A failing chunk is logged and
    skipped, so callers may receive a partial mapping; a missing entry
    means "no engagement yet".
    """
    unique_ids = list(dict.fromkeys(artwork_ids))
    engagements: dict[str, ArtworkEngagement] = {}

    for chunk in chunk_ids(unique_ids, chunk_size):
        try:
            for aggregate in store.query_aggregates(chunk):
                engagements[aggregate.artwork_id] = aggregate
        except Exception:
            logger.exception("Error fetching engagements for %d artworks", len(chunk))

    return engagements

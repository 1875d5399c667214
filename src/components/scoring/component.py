"""
Scoring component - Feed ranking for the discover feed.

Functional core only: no I/O, no clock reads unless `now` is omitted.

Invariants:
- Placeholder artworks score exactly 0 and always sort last
- Non-placeholder artworks have final_score >= min_final_score (1.0)
- Jitter is a pure function of the artwork id (stable across renders)
- Inputs are never mutated; new ScoredArtwork copies are returned
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime

from src.core.entities import Artwork, ArtworkEngagement, ScoredArtwork, ensure_utc

from .models import (
    DEFAULT_DIVERSITY_CONFIG,
    DEFAULT_SCORING_CONFIG,
    DiversityConfig,
    ScoringConfig,
)

SECONDS_PER_DAY = 24 * 60 * 60


# --- Pure Functions (Functional Core) ---


def is_placeholder(artwork: Artwork, tag: str = DEFAULT_SCORING_CONFIG.placeholder_tag) -> bool:
    """Check for the hidden placeholder tag."""
    return tag in artwork.tags


def calculate_recency_score(
    age_days: float,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """
    Exponential decay: max_boost * e^(-lambda * age), lambda = ln(2) / half-life.

    Returns a value clamped to [0, 1]: 1.0 for a brand-new artwork,
    0.5 at one half-life, 0.25 at two.
    """
    decay = math.log(2) / config.recency_half_life_days
    score = config.max_recency_boost * math.exp(-decay * age_days)
    return max(0.0, min(1.0, score))


def calculate_jitter(artwork_id: str, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> float:
    """
    Deterministic pseudo-random jitter in [-0.1, +0.1] derived from the id.

    Stable per id so the same feed renders in the same order every time.
    """
    code_sum = sum(ord(ch) for ch in artwork_id)
    half = config.jitter_modulus // 2
    return ((code_sum % config.jitter_modulus) - half) / config.jitter_divisor


def zero_engagement(artwork: Artwork, now: datetime) -> ArtworkEngagement:
    """Stand-in aggregate for an artwork nobody has interacted with yet."""
    return ArtworkEngagement(
        artwork_id=artwork.id,
        total_likes=artwork.likes,
        last_updated=now,
        created_at=now,
    )


def calculate_base_score(
    engagement_score: float,
    age_days: float,
    is_followed: bool = False,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """Weighted engagement + recency, with the followed-artist multiplier."""
    normalized = min(engagement_score, config.max_engagement_score) / config.max_engagement_score
    recency = calculate_recency_score(age_days, config)

    base = normalized * config.engagement_weight + recency * config.recency_weight
    if is_followed:
        base = base * config.followed_artist_boost
    return base


def score_artworks(
    artworks: Sequence[Artwork],
    engagements: Mapping[str, ArtworkEngagement],
    followed_artist_ids: Iterable[str] | None = None,
    *,
    now: datetime | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[ScoredArtwork]:
    """
    Score artworks on engagement and recency.

    Args:
        artworks: Artworks to score (order preserved in the output)
        engagements: Aggregates keyed by artwork id; missing ids get a zero
            aggregate seeded with the artwork's denormalized like count
        followed_artist_ids: Artists the viewer follows (score x1.5)
        now: Reference time for recency (defaults to current UTC time)
        config: Scoring weights

    Returns:
        One ScoredArtwork per input artwork
    """
    reference = ensure_utc(now) if now is not None else datetime.now(UTC)
    followed = frozenset(followed_artist_ids) if followed_artist_ids is not None else frozenset()

    scored: list[ScoredArtwork] = []
    for artwork in artworks:
        fields = artwork.model_dump(exclude={"engagement_score", "final_score"})

        if is_placeholder(artwork, config.placeholder_tag):
            scored.append(ScoredArtwork(**fields, engagement_score=0.0, final_score=0.0))
            continue

        engagement = engagements.get(artwork.id) or zero_engagement(artwork, reference)
        age_days = (reference - artwork.created_at).total_seconds() / SECONDS_PER_DAY

        score = calculate_base_score(
            engagement.engagement_score,
            age_days,
            is_followed=artwork.artist_id in followed,
            config=config,
        )
        score = score * (1 + calculate_jitter(artwork.id, config))
        score = max(score, config.min_final_score)

        scored.append(
            ScoredArtwork(
                **fields,
                engagement_score=engagement.engagement_score,
                final_score=round(score, 3),
            )
        )

    return scored


def sort_by_score(
    scored_artworks: Sequence[ScoredArtwork],
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[ScoredArtwork]:
    """
    Sort highest score first, real artworks always before placeholders.

    Ties break on engagement_score, then newest created_at.
    """

    def sort_key(item: ScoredArtwork) -> tuple[bool, float, float, float]:
        return (
            is_placeholder(item, config.placeholder_tag),
            -item.final_score,
            -item.engagement_score,
            -item.created_at.timestamp(),
        )

    return sorted(scored_artworks, key=sort_key)


def image_key(image_url: str | None, config: DiversityConfig = DEFAULT_DIVERSITY_CONFIG) -> str | None:
    """Truncated image URL used to spot the same visual asset."""
    if not image_url:
        return None
    return image_url[: config.image_key_length]


def apply_diversity_boost(
    scored_artworks: Sequence[ScoredArtwork],
    diversity_penalty: float | None = None,
    config: DiversityConfig = DEFAULT_DIVERSITY_CONFIG,
) -> list[ScoredArtwork]:
    """
    Penalize repeats of the same artist or image within a short window.

    Single pass in final_score order: penalties change the emitted score
    only, never the walk order.

    Args:
        scored_artworks: Scored artworks (any order)
        diversity_penalty: Penalty unit (defaults to config.penalty, 0.15)
        config: Window sizes and floor

    Returns:
        Artworks in descending original final_score order with adjusted scores
    """
    if len(scored_artworks) <= 1:
        return list(scored_artworks)

    penalty = config.penalty if diversity_penalty is None else diversity_penalty
    ordered = sorted(scored_artworks, key=lambda item: item.final_score, reverse=True)

    result: list[ScoredArtwork] = []
    last_artist_position: dict[str, int] = {}
    last_image_position: dict[str, int] = {}

    for item in ordered:
        position = len(result)
        score = item.final_score
        penalized = False

        if item.artist_id in last_artist_position:
            distance = position - last_artist_position[item.artist_id]
            if distance < config.artist_window:
                score -= penalty * (config.artist_window - distance)
                penalized = True

        key = image_key(item.image_url, config)
        if key is not None and key in last_image_position:
            distance = position - last_image_position[key]
            if distance < config.image_window:
                score -= penalty * config.image_penalty_multiplier * (config.image_window - distance)
                penalized = True

        if penalized:
            score = max(config.min_score, score)
            item = item.model_copy(update={"final_score": score})

        result.append(item)
        last_artist_position[item.artist_id] = position
        if key is not None:
            last_image_position[key] = position

    return result


def rank_artworks(
    artworks: Sequence[Artwork],
    engagements: Mapping[str, ArtworkEngagement],
    followed_artist_ids: Iterable[str] | None = None,
    *,
    now: datetime | None = None,
    scoring: ScoringConfig = DEFAULT_SCORING_CONFIG,
    diversity: DiversityConfig = DEFAULT_DIVERSITY_CONFIG,
) -> list[ScoredArtwork]:
    """Reference pipeline: score -> sort -> diversity boost."""
    scored = score_artworks(artworks, engagements, followed_artist_ids, now=now, config=scoring)
    return apply_diversity_boost(sort_by_score(scored, scoring), config=diversity)

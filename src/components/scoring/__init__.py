"""
Scoring component - Engagement + recency feed ranking with diversity spacing.
"""

from .component import (
    apply_diversity_boost,
    calculate_base_score,
    calculate_jitter,
    calculate_recency_score,
    image_key,
    is_placeholder,
    rank_artworks,
    score_artworks,
    sort_by_score,
    zero_engagement,
)
from .models import (
    DEFAULT_DIVERSITY_CONFIG,
    DEFAULT_SCORING_CONFIG,
    DiversityConfig,
    ScoringConfig,
)

__all__ = [
    # Entry points
    "score_artworks",
    "sort_by_score",
    "apply_diversity_boost",
    "rank_artworks",
    # Pure helpers
    "calculate_base_score",
    "calculate_jitter",
    "calculate_recency_score",
    "image_key",
    "is_placeholder",
    "zero_engagement",
    # Models
    "ScoringConfig",
    "DiversityConfig",
    "DEFAULT_SCORING_CONFIG",
    "DEFAULT_DIVERSITY_CONFIG",
]

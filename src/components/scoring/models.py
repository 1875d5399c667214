"""
Scoring component configuration models.

Defaults mirror rules.yaml (scoring / diversity sections).
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.entities import PLACEHOLDER_TAG


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and constants for score_artworks."""

    engagement_weight: float = 0.7
    recency_weight: float = 0.3

    # Recency decays exponentially: score halves every half-life
    recency_half_life_days: float = 7.0
    max_recency_boost: float = 1.0

    followed_artist_boost: float = 1.5

    # Legitimate artworks never score below this (placeholders are fixed at 0)
    min_final_score: float = 1.0

    # Normalization ceiling for the stored engagement score
    max_engagement_score: float = 100.0

    # Jitter = ((sum of char codes % modulus) - modulus / 2) / divisor
    jitter_modulus: int = 200
    jitter_divisor: float = 1000.0

    placeholder_tag: str = PLACEHOLDER_TAG


@dataclass(frozen=True)
class DiversityConfig:
    """Constants for apply_diversity_boost."""

    penalty: float = 0.15
    artist_window: int = 3
    image_window: int = 5
    image_penalty_multiplier: float = 2.0
    image_key_length: int = 100
    min_score: float = 0.01


DEFAULT_SCORING_CONFIG = ScoringConfig()
DEFAULT_DIVERSITY_CONFIG = DiversityConfig()

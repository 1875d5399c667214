"""
Engagement component configuration and error models.

Defaults mirror rules.yaml (tracking / engagement_score sections).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TrackingConfig:
    """Tracker buffering and batching configuration."""

    # Views shorter than this are treated as scroll-past noise
    min_view_time_ms: float = 1000.0

    flush_interval_seconds: float = 5.0

    # Store-side cardinality limit for batched aggregate reads
    max_ids_per_query: int = 10

    flush_max_workers: int = 8

    # Registry drops trackers idle for longer than this
    idle_tracker_ttl_seconds: float = 300.0

    # Skip the aggregate adjustment when the stored liked flag already matches
    idempotent_likes: bool = False


@dataclass(frozen=True)
class EngagementScoreConfig:
    """Weights for the aggregate engagement score (sum to 1.0)."""

    view_time_weight: float = 0.3
    likes_weight: float = 0.4
    clicks_weight: float = 0.2
    views_weight: float = 0.1
    precision: int = 2


DEFAULT_TRACKING_CONFIG = TrackingConfig()
DEFAULT_ENGAGEMENT_SCORE_CONFIG = EngagementScoreConfig()


class TrackerError(ValueError):
    """Raised for structurally invalid tracker calls (programmer error)."""

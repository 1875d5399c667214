"""
Engagement component - View time, like and click tracking with aggregate scoring.
"""

from ._tracker import EngagementTracker, TrackerRegistry
from .component import (
    chunk_ids,
    compute_engagement_score,
    fetch_engagements,
    normalize_metric,
    score_aggregate,
)
from .models import (
    DEFAULT_ENGAGEMENT_SCORE_CONFIG,
    DEFAULT_TRACKING_CONFIG,
    EngagementScoreConfig,
    TrackerError,
    TrackingConfig,
)
from .ports import (
    EngagementStorePort,
    FlushTimerPort,
    TimerFactory,
)

__all__ = [
    # Tracker
    "EngagementTracker",
    "TrackerRegistry",
    # Component functions
    "fetch_engagements",
    # Pure functions
    "chunk_ids",
    "compute_engagement_score",
    "normalize_metric",
    "score_aggregate",
    # Models
    "TrackingConfig",
    "EngagementScoreConfig",
    "TrackerError",
    "DEFAULT_TRACKING_CONFIG",
    "DEFAULT_ENGAGEMENT_SCORE_CONFIG",
    # Ports
    "EngagementStorePort",
    "FlushTimerPort",
    "TimerFactory",
]

"""
Feed component - Discover feed ordering (popular / newest / oldest / likes).
"""

from .component import (
    FeedService,
    order_by_created,
    order_by_likes,
    order_by_updated,
    split_placeholders,
    validate_feed_input,
)
from .models import (
    SORT_MODES,
    FeedResult,
    FeedValidationError,
    RankFeedInput,
    SortMode,
    Strategy,
)
from .ports import EngagementReaderPort

__all__ = [
    # Service
    "FeedService",
    # Pure functions
    "order_by_created",
    "order_by_likes",
    "order_by_updated",
    "split_placeholders",
    "validate_feed_input",
    # Models
    "FeedResult",
    "FeedValidationError",
    "RankFeedInput",
    "SORT_MODES",
    "SortMode",
    "Strategy",
    # Ports
    "EngagementReaderPort",
]

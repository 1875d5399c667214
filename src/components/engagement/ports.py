"""
Engagement component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

from src.core.entities import ArtworkEngagement, UserEngagementRecord


class EngagementStorePort(Protocol):
    """Key-value store for per-user records and per-artwork aggregates."""

    def get_user_record(self, artwork_id: str, user_id: str) -> UserEngagementRecord | None:
        """Get one user's record for an artwork, or None."""
        ...

    def upsert_user_record(self, artwork_id: str, user_id: str, fields: dict[str, Any]) -> None:
        """
        Create or merge-update a per-user record.

        Only the given fields are written; other stored fields are kept.
        """
        ...

    def increment_aggregate(self, artwork_id: str, increments: dict[str, float]) -> None:
        """
        Atomically add to aggregate counters, creating the aggregate if needed.

        Keys are ArtworkEngagement counter names (total_view_time,
        total_views, total_likes, total_clicks). Sets last_updated.
        """
        ...

    def set_engagement_score(self, artwork_id: str, score: float) -> None:
        """Persist a recomputed engagement score."""
        ...

    def get_aggregate(self, artwork_id: str) -> ArtworkEngagement | None:
        """Get the aggregate for one artwork, or None."""
        ...

    def query_aggregates(self, artwork_ids: Sequence[str]) -> list[ArtworkEngagement]:
        """
        Get aggregates for several artworks in a single query.

        Callers must respect the store's per-query id limit; ids without
        an aggregate are simply absent from the result.
        """
        ...


class FlushTimerPort(Protocol):
    """Periodic trigger for the tracker's background flush."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    @property
    def is_running(self) -> bool: ...


TimerFactory = Callable[[Callable[[], Any], float], FlushTimerPort]

"""
Feed component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.core.entities import ArtworkEngagement


class EngagementReaderPort(Protocol):
    """Batched read of engagement aggregates (EngagementTracker satisfies this)."""

    def get_artwork_engagements(self, artwork_ids: list[str]) -> dict[str, ArtworkEngagement]:
        """Aggregates keyed by artwork id; ids without engagement are absent."""
        ...

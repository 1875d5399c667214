"""
In-memory engagement store (EngagementStorePort) for development and tests.

Emulates the document store the tracker was designed against:
- merge upserts for per-user records
- atomic field increments on aggregates (aggregate created on first write)
- batched reads limited to max_ids_per_query ids
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from src.adapters.clock import SystemClock
from src.core.entities import ArtworkEngagement, UserEngagementRecord
from src.ports.clock import ClockPort

AGGREGATE_COUNTERS = frozenset({"total_view_time", "total_views", "total_likes", "total_clicks"})
USER_RECORD_FIELDS = frozenset({"view_time", "last_viewed_at", "liked", "clicked", "last_updated"})


class InMemoryEngagementStore:
    """Thread-safe dict-backed engagement store."""

    def __init__(
        self,
        clock: ClockPort | None = None,
        max_ids_per_query: int = 10,
    ) -> None:
        self._clock: ClockPort = clock or SystemClock()
        self._max_ids_per_query = max_ids_per_query
        self._aggregates: dict[str, ArtworkEngagement] = {}
        self._user_records: dict[tuple[str, str], UserEngagementRecord] = {}
        self._lock = threading.Lock()

    @property
    def max_ids_per_query(self) -> int:
        return self._max_ids_per_query

    def _now(self) -> datetime:
        return self._clock.now_utc()

    # --- Per-user records ---

    def get_user_record(self, artwork_id: str, user_id: str) -> UserEngagementRecord | None:
        with self._lock:
            return self._user_records.get((artwork_id, user_id))

    def upsert_user_record(self, artwork_id: str, user_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - USER_RECORD_FIELDS
        if unknown:
            msg = f"Unknown user record fields: {sorted(unknown)}"
            raise ValueError(msg)

        with self._lock:
            key = (artwork_id, user_id)
            existing = self._user_records.get(key)
            if existing is None:
                existing = UserEngagementRecord(
                    artwork_id=artwork_id,
                    user_id=user_id,
                    last_updated=self._now(),
                )
            self._user_records[key] = existing.model_copy(update=fields)

    # --- Aggregates ---

    def increment_aggregate(self, artwork_id: str, increments: dict[str, float]) -> None:
        unknown = set(increments) - AGGREGATE_COUNTERS
        if unknown:
            msg = f"Unknown aggregate counters: {sorted(unknown)}"
            raise ValueError(msg)

        with self._lock:
            now = self._now()
            aggregate = self._aggregates.get(artwork_id)
            if aggregate is None:
                aggregate = ArtworkEngagement(
                    artwork_id=artwork_id, last_updated=now, created_at=now
                )

            updates: dict[str, Any] = {"last_updated": now}
            for counter, amount in increments.items():
                current = getattr(aggregate, counter)
                if counter == "total_view_time":
                    updates[counter] = current + amount
                else:
                    updates[counter] = current + int(amount)

            self._aggregates[artwork_id] = aggregate.model_copy(update=updates)

    def set_engagement_score(self, artwork_id: str, score: float) -> None:
        with self._lock:
            aggregate = self._aggregates.get(artwork_id)
            if aggregate is None:
                msg = f"Aggregate not found: {artwork_id}"
                raise KeyError(msg)
            self._aggregates[artwork_id] = aggregate.model_copy(update={"engagement_score": score})

    def get_aggregate(self, artwork_id: str) -> ArtworkEngagement | None:
        with self._lock:
            return self._aggregates.get(artwork_id)

    def query_aggregates(self, artwork_ids: Sequence[str]) -> list[ArtworkEngagement]:
        if len(artwork_ids) > self._max_ids_per_query:
            msg = (
                f"Query exceeds {self._max_ids_per_query} ids "
                f"({len(artwork_ids)} requested); chunk the request"
            )
            raise ValueError(msg)

        with self._lock:
            return [self._aggregates[i] for i in artwork_ids if i in self._aggregates]

    def put_aggregate(self, aggregate: ArtworkEngagement) -> None:
        """Seed or replace an aggregate (fixtures, imports)."""
        with self._lock:
            self._aggregates[aggregate.artwork_id] = aggregate

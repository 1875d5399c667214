"""
EngagementTracker - Per-user view time, like and click tracking.

Observes interaction signals, buffers view time locally and flushes it
to the engagement store on a fixed interval. Every aggregate mutation
triggers an engagement score recomputation.

Key behaviors:
- Guests (user_id None) are never tracked; calls are silent no-ops
- Views shorter than min_view_time_ms are discarded as noise
- Flush is at-least-once: failed artworks are re-buffered for the next tick
- Only one flush runs at a time; overlapping calls return immediately
- Store failures are logged, never raised to the caller
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timedelta
from typing import Any

from src.adapters.clock import SystemClock
from src.adapters.flush_timer import IntervalFlushTimer
from src.core.entities import ArtworkEngagement
from src.ports.clock import ClockPort

from .component import fetch_engagements, score_aggregate
from .models import (
    DEFAULT_ENGAGEMENT_SCORE_CONFIG,
    DEFAULT_TRACKING_CONFIG,
    EngagementScoreConfig,
    TrackerError,
    TrackingConfig,
)
from .ports import EngagementStorePort, FlushTimerPort, TimerFactory

logger = logging.getLogger(__name__)


def _require_artwork_id(artwork_id: str) -> None:
    if not isinstance(artwork_id, str) or not artwork_id:
        raise TrackerError(f"artwork_id must be a non-empty string, got {artwork_id!r}")


class EngagementTracker:
    """
    Engagement tracker bound to one user.

    Owned by the composition root (see TrackerRegistry); call cleanup()
    on teardown so buffered view time is not lost.
    """

    def __init__(
        self,
        store: EngagementStorePort,
        user_id: str | None = None,
        *,
        clock: ClockPort | None = None,
        config: TrackingConfig = DEFAULT_TRACKING_CONFIG,
        score_config: EngagementScoreConfig = DEFAULT_ENGAGEMENT_SCORE_CONFIG,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._clock: ClockPort = clock or SystemClock()
        self._config = config
        self._score_config = score_config
        self._timer_factory: TimerFactory = timer_factory or IntervalFlushTimer

        self._view_starts: dict[str, datetime] = {}
        self._pending: dict[str, float] = {}
        self._timer: FlushTimerPort | None = None
        self._last_active = self._clock.now_utc()

        # Guards _view_starts, _pending, _timer and _last_active
        self._lock = threading.Lock()
        # Held for the duration of a flush
        self._flush_lock = threading.Lock()

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def is_guest(self) -> bool:
        return self._user_id is None

    @property
    def is_flush_scheduled(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_running

    def pending_updates(self) -> dict[str, float]:
        """Snapshot of buffered view time (ms) keyed by artwork id."""
        with self._lock:
            return dict(self._pending)

    def is_tracking(self, artwork_id: str) -> bool:
        with self._lock:
            return artwork_id in self._view_starts

    def idle_since(self) -> datetime | None:
        """
        Time of the last interaction, or None while anything is being
        tracked, buffered or scheduled for flush.
        """
        with self._lock:
            if self._view_starts or self._pending or self._timer is not None:
                return None
            return self._last_active

    def _touch(self) -> None:
        with self._lock:
            self._last_active = self._clock.now_utc()

    # --- View time ---

    def start_tracking(self, artwork_id: str) -> None:
        """
        Start timing an artwork's visibility.

        A second start without a stop resets the start marker.
        """
        _require_artwork_id(artwork_id)
        if self.is_guest:
            return

        with self._lock:
            now = self._clock.now_utc()
            self._view_starts[artwork_id] = now
            self._last_active = now
            if self._timer is None:
                self._timer = self._timer_factory(
                    self.flush_pending_updates,
                    self._config.flush_interval_seconds,
                )
                self._timer.start()

    def stop_tracking(self, artwork_id: str) -> float:
        """
        Stop timing an artwork and buffer the elapsed view time.

        Returns:
            Milliseconds added to the pending buffer (0 if below threshold
            or the artwork was not being tracked)
        """
        _require_artwork_id(artwork_id)

        with self._lock:
            started = self._view_starts.pop(artwork_id, None)
            if started is None:
                return 0.0

            now = self._clock.now_utc()
            self._last_active = now
            elapsed_ms = (now - started).total_seconds() * 1000
            if elapsed_ms < self._config.min_view_time_ms:
                logger.debug("Discarded %.0fms view of artwork %s", elapsed_ms, artwork_id)
                return 0.0

            self._pending[artwork_id] = self._pending.get(artwork_id, 0.0) + elapsed_ms

        logger.debug("Buffered %.0fms view of artwork %s", elapsed_ms, artwork_id)
        return elapsed_ms

    def flush_pending_updates(self) -> int:
        """
        Write buffered view time to the store.

        For each buffered artwork (concurrently): add the time to the
        user's record, increment the aggregate's view time and view count,
        then recompute its score. Failed artworks are re-buffered.

        Returns immediately if another flush is in progress. Once nothing
        is buffered or being tracked, the flush timer is stopped; the next
        start_tracking() schedules a new one.

        Returns:
            Number of artworks flushed successfully
        """
        flushed = self._flush(blocking=False)
        self._stop_timer_if_idle()
        return flushed

    def _flush(self, *, blocking: bool) -> int:
        if not self._flush_lock.acquire(blocking=blocking):
            logger.debug("Flush already in progress, skipping")
            return 0

        try:
            if self.is_guest:
                return 0

            with self._lock:
                if not self._pending:
                    return 0
                updates = list(self._pending.items())
                self._pending.clear()

            failed = self._write_view_updates(updates)

            if failed:
                with self._lock:
                    for artwork_id, view_time in failed:
                        self._pending[artwork_id] = self._pending.get(artwork_id, 0.0) + view_time
                logger.warning("Re-queued view time for %d artworks", len(failed))

            flushed = len(updates) - len(failed)
            if flushed:
                logger.info("Flushed view time for %d artworks (user %s)", flushed, self._user_id)
            return flushed
        finally:
            self._flush_lock.release()

    def _stop_timer_if_idle(self) -> None:
        # An in-flight flush may still re-queue; it checks again when done
        if self._flush_lock.locked():
            return

        with self._lock:
            if self._timer is None or self._pending or self._view_starts:
                return
            timer, self._timer = self._timer, None

        # May run on the timer's own thread; stop() does not join itself
        timer.stop()
        logger.debug("Flush timer released for idle user %s", self._user_id)

    def _write_view_updates(self, updates: list[tuple[str, float]]) -> list[tuple[str, float]]:
        """Run all writes, wait for every one to settle, return the failures."""
        workers = max(1, min(self._config.flush_max_workers, len(updates)))
        failed: list[tuple[str, float]] = []

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="engagement-flush") as pool:
            futures = {
                pool.submit(self._write_view_time, artwork_id, view_time): (artwork_id, view_time)
                for artwork_id, view_time in updates
            }
            wait(futures)

        for future, update in futures.items():
            error = future.exception()
            if error is not None:
                logger.error(
                    "Error flushing view time for artwork %s: %s",
                    update[0],
                    error,
                    exc_info=error,
                )
                failed.append(update)

        return failed

    def _write_view_time(self, artwork_id: str, view_time: float) -> None:
        assert self._user_id is not None
        now = self._clock.now_utc()

        existing = self._store.get_user_record(artwork_id, self._user_id)
        existing_view_time = existing.view_time if existing is not None else 0.0

        self._store.upsert_user_record(
            artwork_id,
            self._user_id,
            {
                "view_time": existing_view_time + view_time,
                "last_viewed_at": now,
                "last_updated": now,
            },
        )
        self._store.increment_aggregate(
            artwork_id,
            {"total_view_time": view_time, "total_views": 1},
        )
        self._recalculate_engagement_score(artwork_id)

    # --- Interactions ---

    def record_like(self, artwork_id: str, is_liked: bool) -> None:
        """
        Record a like (True) or unlike (False).

        The caller passes the new state; the aggregate moves by +1 / -1.
        With idempotent_likes enabled, a state equal to the stored flag
        is ignored.
        """
        _require_artwork_id(artwork_id)
        if self._user_id is None:
            return
        self._touch()

        try:
            if self._config.idempotent_likes:
                existing = self._store.get_user_record(artwork_id, self._user_id)
                current = existing.liked if existing is not None else False
                if current == is_liked:
                    logger.debug("Like state unchanged for artwork %s", artwork_id)
                    return

            self._store.upsert_user_record(
                artwork_id,
                self._user_id,
                {"liked": is_liked, "last_updated": self._clock.now_utc()},
            )
            self._store.increment_aggregate(artwork_id, {"total_likes": 1 if is_liked else -1})
            self._recalculate_engagement_score(artwork_id)
        except Exception:
            logger.exception("Error recording like for artwork %s", artwork_id)

    def record_click(self, artwork_id: str) -> None:
        """Record a click-through on an artwork."""
        _require_artwork_id(artwork_id)
        if self._user_id is None:
            return
        self._touch()

        try:
            self._store.upsert_user_record(
                artwork_id,
                self._user_id,
                {"clicked": True, "last_updated": self._clock.now_utc()},
            )
            self._store.increment_aggregate(artwork_id, {"total_clicks": 1})
            self._recalculate_engagement_score(artwork_id)
        except Exception:
            logger.exception("Error recording click for artwork %s", artwork_id)

    def _recalculate_engagement_score(self, artwork_id: str) -> float | None:
        try:
            aggregate = self._store.get_aggregate(artwork_id)
            if aggregate is None:
                return None

            score = score_aggregate(aggregate, self._score_config)
            self._store.set_engagement_score(artwork_id, score)
            return score
        except Exception:
            logger.exception("Error recalculating engagement score for artwork %s", artwork_id)
            return None

    # --- Reads ---

    def get_artwork_engagement(self, artwork_id: str) -> ArtworkEngagement | None:
        """Aggregate for one artwork; None if absent or on read failure."""
        _require_artwork_id(artwork_id)
        try:
            return self._store.get_aggregate(artwork_id)
        except Exception:
            logger.exception("Error getting engagement for artwork %s", artwork_id)
            return None

    def get_artwork_engagements(self, artwork_ids: list[str]) -> dict[str, ArtworkEngagement]:
        """Aggregates for many artworks, chunked to the store's query limit."""
        return fetch_engagements(self._store, artwork_ids, self._config.max_ids_per_query)

    # --- Lifecycle ---

    def cleanup(self) -> None:
        """
        Stop the flush timer and flush whatever is still buffered.

        Waits for an in-flight flush to finish first, so view time buffered
        while it was writing is not lost.
        """
        with self._lock:
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.stop()

        self._flush(blocking=True)


class TrackerRegistry:
    """
    One tracker per user, owned by the application's composition root.

    Guests share a single non-tracking instance. Trackers idle for longer
    than config.idle_tracker_ttl_seconds are evicted whenever a new user's
    tracker is created, or on evict_idle().
    """

    def __init__(
        self,
        store: EngagementStorePort,
        *,
        clock: ClockPort | None = None,
        config: TrackingConfig = DEFAULT_TRACKING_CONFIG,
        score_config: EngagementScoreConfig = DEFAULT_ENGAGEMENT_SCORE_CONFIG,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self._store = store
        self._clock: ClockPort = clock or SystemClock()
        self._idle_ttl = timedelta(seconds=config.idle_tracker_ttl_seconds)
        self._tracker_kwargs: dict[str, Any] = {
            "clock": self._clock,
            "config": config,
            "score_config": score_config,
            "timer_factory": timer_factory,
        }
        self._trackers: dict[str | None, EngagementTracker] = {}
        self._lock = threading.Lock()

    @property
    def store(self) -> EngagementStorePort:
        return self._store

    def for_user(self, user_id: str | None) -> EngagementTracker:
        """Get (or lazily create) the tracker bound to user_id."""
        key = user_id or None
        with self._lock:
            tracker = self._trackers.get(key)
            if tracker is None:
                self._evict_idle_locked()
                tracker = EngagementTracker(self._store, key, **self._tracker_kwargs)
                self._trackers[key] = tracker
            return tracker

    def evict_idle(self) -> int:
        """Drop trackers with nothing tracked, buffered or scheduled past the TTL."""
        with self._lock:
            return self._evict_idle_locked()

    def _evict_idle_locked(self) -> int:
        cutoff = self._clock.now_utc() - self._idle_ttl
        stale: list[str | None] = []
        for key, tracker in self._trackers.items():
            # The guest tracker is shared by the feed service
            if key is None:
                continue
            idle_since = tracker.idle_since()
            if idle_since is not None and idle_since <= cutoff:
                stale.append(key)

        for key in stale:
            del self._trackers[key]
        if stale:
            logger.debug("Evicted %d idle engagement trackers", len(stale))
        return len(stale)

    def cleanup_all(self) -> None:
        """Release every tracker (stop timers, final flush)."""
        with self._lock:
            trackers = list(self._trackers.values())
            self._trackers.clear()

        for tracker in trackers:
            tracker.cleanup()
        logger.info("Cleaned up %d engagement trackers", len(trackers))

    def __len__(self) -> int:
        with self._lock:
            return len(self._trackers)

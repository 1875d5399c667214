"""
Engagement tracking API routes.

Interaction signals from feed tiles: view start/stop, likes, clicks.
Caller identity comes from the X-User-Id header; guests get 200 with
tracked=false and nothing is recorded.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_tracker
from src.api.schemas import (
    ArtworkRef,
    BatchEngagementRequest,
    BatchEngagementResponse,
    FlushResponse,
    LikeRequest,
    OkResponse,
    StopViewResponse,
)
from src.components.engagement import EngagementTracker
from src.core.entities import ArtworkEngagement

router = APIRouter()


@router.post("/views/start", response_model=OkResponse)
def start_view(
    body: ArtworkRef,
    tracker: EngagementTracker = Depends(get_tracker),
) -> OkResponse:
    """Artwork became visible."""
    tracker.start_tracking(body.artwork_id)
    return OkResponse(tracked=not tracker.is_guest)


@router.post("/views/stop", response_model=StopViewResponse)
def stop_view(
    body: ArtworkRef,
    tracker: EngagementTracker = Depends(get_tracker),
) -> StopViewResponse:
    """Artwork left the viewport; returns the buffered view time."""
    view_time_ms = tracker.stop_tracking(body.artwork_id)
    return StopViewResponse(tracked=not tracker.is_guest, view_time_ms=view_time_ms)


@router.post("/likes", response_model=OkResponse)
def record_like(
    body: LikeRequest,
    tracker: EngagementTracker = Depends(get_tracker),
) -> OkResponse:
    tracker.record_like(body.artwork_id, body.liked)
    return OkResponse(tracked=not tracker.is_guest)


@router.post("/clicks", response_model=OkResponse)
def record_click(
    body: ArtworkRef,
    tracker: EngagementTracker = Depends(get_tracker),
) -> OkResponse:
    tracker.record_click(body.artwork_id)
    return OkResponse(tracked=not tracker.is_guest)


@router.post("/flush", response_model=FlushResponse)
def flush(tracker: EngagementTracker = Depends(get_tracker)) -> FlushResponse:
    """Write the caller's buffered view time now instead of on the next tick."""
    flushed = tracker.flush_pending_updates()
    return FlushResponse(flushed=flushed, pending=len(tracker.pending_updates()))


@router.post("/batch", response_model=BatchEngagementResponse)
def get_engagements(
    body: BatchEngagementRequest,
    tracker: EngagementTracker = Depends(get_tracker),
) -> BatchEngagementResponse:
    """Aggregates for many artworks; artworks without engagement are omitted."""
    return BatchEngagementResponse(engagements=tracker.get_artwork_engagements(body.artwork_ids))


@router.get("/{artwork_id}", response_model=ArtworkEngagement)
def get_engagement(
    artwork_id: str,
    tracker: EngagementTracker = Depends(get_tracker),
) -> ArtworkEngagement:
    engagement = tracker.get_artwork_engagement(artwork_id)
    if engagement is None:
        raise HTTPException(status_code=404, detail="No engagement recorded for artwork")
    return engagement

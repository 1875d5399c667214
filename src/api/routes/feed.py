"""
Feed ranking API routes.

Orders a candidate list of artworks supplied by the content service.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_feed_service, get_rules
from src.api.schemas import ErrorResponse, FeedItem, FeedRankRequest, FeedRankResponse
from src.components.feed import FeedService, RankFeedInput
from src.rules.models import Rules

router = APIRouter()


@router.post(
    "/rank",
    response_model=FeedRankResponse,
    responses={400: {"model": ErrorResponse}},
)
def rank_feed(
    body: FeedRankRequest,
    service: FeedService = Depends(get_feed_service),
    rules: Rules = Depends(get_rules),
) -> FeedRankResponse:
    """
    Rank artworks for the discover feed.

    sort_by: popular (engagement ranking, newest-first without engagement
    data), newest, oldest, likes or recent (last updated). Placeholders are
    always last.
    """
    inp = RankFeedInput(
        artworks=tuple(body.items),
        sort_by=body.sort_by or rules.feed.default_sort,
        followed_artist_ids=(
            frozenset(body.followed_artist_ids) if body.followed_artist_ids is not None else None
        ),
        limit=body.limit if body.limit is not None else rules.feed.default_limit,
    )

    result = service.rank(inp)

    if not result.success or result.strategy is None:
        raise HTTPException(
            status_code=400,
            detail={
                "ok": False,
                "errors": [
                    {"code": e.code, "message": e.message, "field": e.field_name}
                    for e in result.errors
                ],
            },
        )

    return FeedRankResponse(
        items=[FeedItem(**item.model_dump()) for item in result.items],
        strategy=result.strategy,
        engagement_count=result.engagement_count,
        total=result.total,
    )

"""Personalized feed, public feed and impression endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ranking.models import ImpressionEvent

from ..models import (
    FeedResponse,
    ImpressionsRequest,
    ImpressionsResponse,
    PublicFeedResponse,
)
from ..services import FeedUnavailableError, UnknownTopicError
from ..state import get_state
from ..utils import require_user_id, to_article_card

router = APIRouter()


@router.get("", response_model=FeedResponse)
async def get_feed(
    cursor: Optional[str] = Query(default=None),
    feed_request_id: Optional[str] = Query(default=None),
    user_id: str = Depends(require_user_id),
):
    """One page of the user's ranked feed. cursor is the last article id of the previous page."""
    state = get_state()
    try:
        page = await state.feed_service.get_feed(user_id, cursor=cursor, feed_request_id=feed_request_id)
    except FeedUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Feed temporarily unavailable: {e}")
    topics = state.content.get_topics()
    return FeedResponse(
        items=[
            to_article_card(item, topics, position=page.offset + i)
            for i, item in enumerate(page.items)
        ],
        next_cursor=page.next_cursor,
        feed_request_id=page.feed_request_id,
        algorithm_version=page.algorithm_version,
    )


@router.get("/public", response_model=PublicFeedResponse)
def get_public_feed(
    topic: Optional[str] = Query(default=None),
    cursor: Optional[str] = Query(default=None),
):
    """Non-personalized feed over preinstalled sources."""
    state = get_state()
    try:
        items, next_cursor = state.public_feed.get_page(topic_slug=topic, cursor=cursor)
    except UnknownTopicError as e:
        raise HTTPException(status_code=404, detail=str(e))
    topics = state.content.get_topics()
    return PublicFeedResponse(
        items=[to_article_card(item, topics) for item in items],
        next_cursor=next_cursor,
    )


@router.post("/impressions", response_model=ImpressionsResponse)
def record_impressions(request: ImpressionsRequest, user_id: str = Depends(require_user_id)):
    """Record what was shown. Re-sending the same (feed, article) pair is a no-op."""
    state = get_state()
    known = state.content.get_articles([item.article_id for item in request.items])
    unknown = sorted({item.article_id for item in request.items} - set(known))
    if unknown:
        raise HTTPException(status_code=404, detail=f"Unknown article ids: {unknown}")
    events = [
        ImpressionEvent(
            user_id=user_id,
            feed_request_id=request.feed_request_id,
            article_id=item.article_id,
            position=item.position,
            algorithm_version=item.algorithm_version,
            candidate_sources=item.candidate_sources,
        )
        for item in request.items
    ]
    recorded = state.impressions.record(events)
    return ImpressionsResponse(recorded=recorded, duplicates=len(events) - recorded)

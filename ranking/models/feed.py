"""
Feed models: the materialized ranked list of one feed request, its pages,
and the impressions reported back for it.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .scoring import CandidateSource, ScoredArticle, utcnow


class MaterializedFeed(BaseModel):
    """Full ordered list computed for page 1; later pages slice it by position."""

    feed_request_id: str
    user_id: str
    items: List[ScoredArticle]
    algorithm_version: str
    created_at: datetime = Field(default_factory=utcnow)


class FeedPage(BaseModel):
    items: List[ScoredArticle]
    next_cursor: Optional[str] = None
    feed_request_id: str
    algorithm_version: str
    # Position of the first item within the materialized feed
    offset: int = 0


class ImpressionEvent(BaseModel):
    """
    One article shown to one user in one feed request.

    Unique on (user_id, feed_request_id, article_id); duplicate writes are no-ops.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    feed_request_id: str
    article_id: str
    position: int
    algorithm_version: str
    candidate_sources: List[CandidateSource] = Field(default_factory=list)
    shown_at: datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> tuple:
        return (self.user_id, self.feed_request_id, self.article_id)

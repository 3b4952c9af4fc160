"""Feed and impression request/response models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ranking.models import CandidateSource

from .common import ArticleCard


class FeedResponse(BaseModel):
    items: List[ArticleCard]
    next_cursor: Optional[str] = None
    feed_request_id: str
    algorithm_version: str


class PublicFeedResponse(BaseModel):
    items: List[ArticleCard]
    next_cursor: Optional[str] = None


class ImpressionItem(BaseModel):
    article_id: str = Field(min_length=1)
    position: int = Field(ge=0)
    algorithm_version: str
    candidate_sources: List[CandidateSource] = []


class ImpressionsRequest(BaseModel):
    feed_request_id: str = Field(min_length=1)
    items: List[ImpressionItem] = Field(min_length=1)


class ImpressionsResponse(BaseModel):
    recorded: int
    duplicates: int

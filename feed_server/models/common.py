"""Common Pydantic models shared across routes."""

from typing import List, Optional

from pydantic import BaseModel

from ranking.models import ScoreBreakdown


class SourceInfo(BaseModel):
    id: str
    title: str
    site_url: Optional[str] = None


class TopicInfo(BaseModel):
    slug: str
    label: str = ""


class ArticleCard(BaseModel):
    id: str
    title: str
    url: str
    summary: Optional[str] = None
    author: Optional[str] = None
    published_at: str
    date_estimated: bool = False
    source: SourceInfo
    topics: List[TopicInfo] = []
    score: float = 0.0
    candidate_sources: List[str] = []
    score_breakdown: ScoreBreakdown = ScoreBreakdown()
    position: Optional[int] = None

"""
Scoring models: Candidate, ScoreBreakdown, ScoredArticle and time helpers.

Contains:
- CandidateSource: pool tags carried from retrieval to the client ("why this")
- Candidate: an article pulled by one or more pools
- ScoreBreakdown / ScoredArticle: per-signal values kept next to the final score
- hours_since, freshness_score: used by the scorer
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .article import Article, Source


class CandidateSource(str, Enum):
    SUBSCRIBED = "SUBSCRIBED"
    TOPIC = "TOPIC"
    VECTOR = "VECTOR"
    TRENDING = "TRENDING"
    EXPLORE = "EXPLORE"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hours_since(when: datetime, now: Optional[datetime] = None) -> float:
    """Hours between when and now; future timestamps count as zero."""
    now = now or utcnow()
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (now - when).total_seconds() / 3600.0)


def freshness_score(
    article: Article,
    tau_hours: float = 48.0,
    estimated_value: float = 0.3,
    now: Optional[datetime] = None,
) -> float:
    """exp(-age_hours / tau); articles with an estimated date get a neutral constant."""
    if article.date_estimated:
        return estimated_value
    return math.exp(-hours_since(article.published_at, now) / tau_hours)


class Candidate(BaseModel):
    """An article eligible for ranking, tagged with every pool that produced it."""

    article: Article
    source: Source
    candidate_sources: List[CandidateSource] = Field(default_factory=list)
    vector_similarity: float = 0.0

    def tag(self, pool: CandidateSource) -> None:
        if pool not in self.candidate_sources:
            self.candidate_sources.append(pool)


class ScoreBreakdown(BaseModel):
    """Every signal that went into a score, kept for explainability."""

    topic_relevance: float = 0.0
    vector_similarity: float = 0.0
    freshness: float = 0.0
    subscribed: float = 0.0
    source_affinity: float = 0.0
    quality_score: float = 0.0
    seen_penalty: float = 0.0


class ScoredArticle(BaseModel):
    """An article with its final score, breakdown and pool tags."""

    article: Article
    source: Source
    score: float
    breakdown: ScoreBreakdown
    candidate_sources: List[CandidateSource] = Field(default_factory=list)

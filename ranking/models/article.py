"""
Content models: articles, sources, topics, per-article stats and vectors.

Used by candidate generation, scoring, and the diversity reranker.
Built from catalog/API dicts via Article.model_validate(d).
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Topic(BaseModel):
    """A topic a source can be tagged with."""

    model_config = ConfigDict(frozen=True)

    id: str
    slug: str
    label: str = ""


class Source(BaseModel):
    """
    A syndicated feed source.

    topics: ids of the topics this source is tagged with; article topics are source topics.
    is_preinstalled: vetted source, eligible for exploration and the public feed.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    site_url: Optional[str] = None
    topics: Set[str] = Field(default_factory=set)
    is_preinstalled: bool = False


class Article(BaseModel):
    """
    Immutable content record supplied by ingestion.

    date_estimated: True when the feed gave no publish date and ingestion guessed one.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str = ""
    url: str = ""
    published_at: datetime
    date_estimated: bool = False
    author: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    source_id: str

    @field_validator("published_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class ArticleStats(BaseModel):
    """Aggregated engagement for one article."""

    article_id: str
    impressions: int = 0
    opens: int = 0
    likes: int = 0
    saves: int = 0
    ctr: Optional[float] = None
    quality_score: Optional[float] = None


class ArticleVector(BaseModel):
    """Content embedding for one article, produced by the embedding job."""

    article_id: str
    vector: List[float]
    model: str = ""


def ensure_articles(items: List[Union[Dict[str, Any], "Article"]]) -> List["Article"]:
    """Convert list of dicts or Articles to list of Article models."""
    return [
        Article.model_validate(a) if isinstance(a, dict) else a
        for a in items
    ]

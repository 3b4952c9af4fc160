"""
Builders for catalog objects and a seeded catalog shared by the test modules.

Catalog layout (seeded_catalog):
    topics   ai, crypto, climate, bio, security
    sources  ai-0..ai-3 (ai), crypto-0, crypto-1 (crypto), climate-0 (climate),
             bio-0 (bio), sec-0 (ai + security): all preinstalled
             private-0 (ai): not preinstalled
    articles ARTICLES_PER_SOURCE per source, one hour apart, newest first
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ranking.models import Article, ScoreBreakdown, ScoredArticle, Source, Topic

ARTICLES_PER_SOURCE = 6

TOPIC_SLUGS = ("ai", "crypto", "climate", "bio", "security")

SOURCE_TOPICS = {
    "ai-0": {"t-ai"},
    "ai-1": {"t-ai"},
    "ai-2": {"t-ai"},
    "ai-3": {"t-ai"},
    "crypto-0": {"t-crypto"},
    "crypto-1": {"t-crypto"},
    "climate-0": {"t-climate"},
    "bio-0": {"t-bio"},
    "sec-0": {"t-ai", "t-security"},
    "private-0": {"t-ai"},
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def make_topic(slug: str) -> Topic:
    return Topic(id=f"t-{slug}", slug=slug, label=slug.title())


def make_source(
    source_id: str,
    topics: Iterable[str] = (),
    preinstalled: bool = True,
    title: Optional[str] = None,
) -> Source:
    return Source(
        id=source_id,
        title=title or source_id.replace("-", " ").title(),
        site_url=f"https://{source_id}.example.com",
        topics=set(topics),
        is_preinstalled=preinstalled,
    )


def make_article(
    article_id: str,
    source_id: str,
    hours_ago: float = 1.0,
    now: Optional[datetime] = None,
    date_estimated: bool = False,
) -> Article:
    now = now or utc_now()
    return Article(
        id=article_id,
        title=f"Article {article_id}",
        url=f"https://example.com/{article_id}",
        summary=f"Summary of {article_id}",
        published_at=now - timedelta(hours=hours_ago),
        date_estimated=date_estimated,
        source_id=source_id,
    )


def make_scored(
    article_id: str,
    source_id: str,
    score: float,
    topics: Iterable[str] = (),
) -> ScoredArticle:
    return ScoredArticle(
        article=make_article(article_id, source_id),
        source=make_source(source_id, topics),
        score=score,
        breakdown=ScoreBreakdown(),
    )


def seeded_catalog(now: Optional[datetime] = None):
    """(topics, sources, articles) for the layout in the module docstring."""
    now = now or utc_now()
    topics = [make_topic(slug) for slug in TOPIC_SLUGS]
    sources = [
        make_source(sid, topics=tids, preinstalled=not sid.startswith("private"))
        for sid, tids in SOURCE_TOPICS.items()
    ]
    articles: List[Article] = []
    for i, sid in enumerate(SOURCE_TOPICS):
        for n in range(ARTICLES_PER_SOURCE):
            # Interleave sources so publish times are unique across the catalog
            hours_ago = 1 + n * len(SOURCE_TOPICS) + i
            articles.append(make_article(f"{sid}-a{n}", sid, hours_ago=hours_ago, now=now))
    return topics, sources, articles


def unit(dim: int, *hot: int) -> List[float]:
    """Vector with 1.0 at the given indices, 0 elsewhere."""
    vec = [0.0] * dim
    for i in hot:
        vec[i] = 1.0
    return vec


VECTOR_DIM = 8
TOPIC_AXES = {"t-ai": 0, "t-crypto": 1, "t-climate": 2, "t-bio": 3, "t-security": 4}


def article_vector(source_id: str) -> List[float]:
    """Content vector of a seeded article: one axis per topic of its source."""
    return unit(VECTOR_DIM, *(TOPIC_AXES[t] for t in sorted(SOURCE_TOPICS[source_id])))

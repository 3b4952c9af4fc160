"""Pure helpers: article card formatting and the caller identity dependency."""

from typing import Mapping, Optional

from fastapi import Header, HTTPException

from ranking.models import ScoredArticle, Topic

from .models import ArticleCard, SourceInfo, TopicInfo


def require_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Authenticated user id, supplied by the upstream auth layer in X-User-Id."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def to_article_card(
    scored: ScoredArticle,
    topics_by_id: Mapping[str, Topic],
    position: Optional[int] = None,
) -> ArticleCard:
    """Build the API card for one ranked article."""
    article = scored.article
    source = scored.source
    topics = [
        TopicInfo(slug=topics_by_id[tid].slug, label=topics_by_id[tid].label)
        for tid in sorted(source.topics)
        if tid in topics_by_id
    ]
    return ArticleCard(
        id=article.id,
        title=article.title,
        url=article.url,
        summary=article.summary,
        author=article.author,
        published_at=article.published_at.isoformat(),
        date_estimated=article.date_estimated,
        source=SourceInfo(id=source.id, title=source.title, site_url=source.site_url),
        topics=topics,
        score=round(scored.score, 6),
        candidate_sources=[s.value for s in scored.candidate_sources],
        score_breakdown=scored.breakdown,
        position=position,
    )

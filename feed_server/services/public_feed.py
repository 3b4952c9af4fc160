"""
Public (non-personalized) feed over preinstalled sources.

Order: real publish dates before estimated ones, then newest first, then id
descending. The cursor is the last article id of the previous page; the next page
starts strictly after it in that order. At most SOURCE_CAP items per source are
taken into a page.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from ranking.models import Article, RankingConfig, ScoreBreakdown, ScoredArticle
from ranking.models.scoring import utcnow

from .content_index import ContentIndex
from .errors import UnknownTopicError

PUBLIC_ALGORITHM_VERSION = "public-v1"
SOURCE_CAP = 2


def _descending(value: str) -> Tuple[int, ...]:
    """Sort key that orders strings descending inside an ascending sort."""
    return tuple(-ord(c) for c in value) + (1,)


def public_sort_key(article: Article) -> tuple:
    return (article.date_estimated, -article.published_at.timestamp(), _descending(article.id))


class PublicFeedService:
    def __init__(self, content: ContentIndex, config: RankingConfig):
        self.content = content
        self.config = config

    def get_page(
        self,
        topic_slug: Optional[str] = None,
        cursor: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[List[ScoredArticle], Optional[str]]:
        """One page of the public feed and the next cursor (None on the last page)."""
        now = now or utcnow()
        sources = self.content.get_sources()
        topic_id = None
        if topic_slug:
            matches = [t.id for t in self.content.get_topics().values() if t.slug == topic_slug]
            if not matches:
                raise UnknownTopicError(topic_slug)
            topic_id = matches[0]

        since = now - timedelta(days=self.config.max_age_days)
        articles = [
            a for a in self.content.recent_articles(since, preinstalled_only=True)
            if topic_id is None or topic_id in sources[a.source_id].topics
        ]
        articles.sort(key=public_sort_key)

        if cursor:
            anchor = self.content.get_article(cursor)
            if anchor is not None:
                anchor_key = public_sort_key(anchor)
                articles = [a for a in articles if public_sort_key(a) > anchor_key]

        page_size = self.config.page_size
        selected: List[Article] = []
        per_source: Dict[str, int] = {}
        for article in articles:
            if len(selected) >= page_size:
                break
            count = per_source.get(article.source_id, 0)
            if count >= SOURCE_CAP:
                continue
            selected.append(article)
            per_source[article.source_id] = count + 1

        items = [
            ScoredArticle(
                article=a,
                source=sources[a.source_id],
                score=0.0,
                breakdown=ScoreBreakdown(),
                candidate_sources=[],
            )
            for a in selected
        ]
        next_cursor = selected[-1].id if len(selected) == page_size else None
        return items, next_cursor

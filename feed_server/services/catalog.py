"""
Source catalog and article content lookups.

The catalog lists the preinstalled sources (title order) with their topics and
article counts, plus every topic (label order). It is what clients pick onboarding
topic slugs and subscribe/hide source ids from. With a user id each source also
says whether that user is subscribed.
"""

import logging
from typing import Dict, List, Optional, Tuple

from .content_index import ContentIndex
from .errors import UnknownArticleError
from .interest_store import InterestStore

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, content: ContentIndex, interests: InterestStore):
        self.content = content
        self.interests = interests

    def list_sources(self, user_id: Optional[str] = None) -> Dict[str, List[Dict]]:
        """{"sources": [...], "topics": [...]}; subscribed is set only when user_id is given."""
        topics = self.content.get_topics()
        counts = self.content.article_counts_by_source()
        subscribed = self.interests.get_subscriptions(user_id) if user_id else None

        sources = sorted(
            (s for s in self.content.get_sources().values() if s.is_preinstalled),
            key=lambda s: (s.title.lower(), s.id),
        )
        entries = []
        for source in sources:
            source_topics = sorted(
                (topics[tid] for tid in source.topics if tid in topics),
                key=lambda t: (t.label.lower(), t.slug),
            )
            entries.append({
                "id": source.id,
                "title": source.title,
                "site_url": source.site_url,
                "topics": [{"slug": t.slug, "label": t.label} for t in source_topics],
                "article_count": counts.get(source.id, 0),
                "subscribed": source.id in subscribed if subscribed is not None else None,
            })
        all_topics = [
            {"slug": t.slug, "label": t.label}
            for t in sorted(topics.values(), key=lambda t: (t.label.lower(), t.slug))
        ]
        logger.debug("[catalog] LISTED sources=%s topics=%s user=%s", len(entries), len(all_topics), user_id)
        return {"sources": entries, "topics": all_topics}

    def article_content(self, article_id: str) -> Tuple[Optional[str], bool]:
        """
        Full content of one article and whether it says more than the summary.

        Raises UnknownArticleError for an unknown id.
        """
        article = self.content.get_article(article_id)
        if article is None:
            raise UnknownArticleError(article_id)
        has_more = article.content is not None and article.content != article.summary
        return article.content, has_more

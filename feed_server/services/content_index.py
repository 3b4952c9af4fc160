"""
Content Index abstraction.

Supplies articles, sources, topics and per-article engagement stats to the feed
service and the maintenance jobs. Implementations: in-memory (seeded from a catalog
JSON file, default for local runs and tests). Ingestion owns writes to articles;
this layer only prunes them and maintains stats.
"""

import json
import logging
import threading
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, Union

from ranking.models import Article, ArticleStats, Source, Topic, ensure_articles

logger = logging.getLogger(__name__)

STAT_FIELDS = ("impressions", "opens", "likes", "saves")


class ContentIndex(Protocol):
    """Protocol for catalog reads and stats writes."""

    def get_article(self, article_id: str) -> Optional[Article]:
        ...

    def get_articles(self, article_ids: Iterable[str]) -> Dict[str, Article]:
        ...

    def get_sources(self) -> Dict[str, Source]:
        """All sources keyed by id."""
        ...

    def get_topics(self) -> Dict[str, Topic]:
        """All topics keyed by id."""
        ...

    def article_counts_by_source(self) -> Dict[str, int]:
        """source_id -> number of articles held for it."""
        ...

    def articles_by_sources(self, source_ids: Iterable[str], since: datetime, limit: int) -> List[Article]:
        """Articles from the given sources published at or after since, newest first."""
        ...

    def articles_by_topics(self, topic_ids: Iterable[str], since: datetime, limit: int) -> List[Article]:
        """Articles whose source is tagged with any of the topics, newest first."""
        ...

    def recent_articles(
        self,
        since: datetime,
        limit: Optional[int] = None,
        preinstalled_only: bool = False,
    ) -> List[Article]:
        """Articles published at or after since, newest first."""
        ...

    def engaged_articles(self, since: datetime) -> List[Tuple[Article, ArticleStats]]:
        """Articles published since, paired with stats that have likes or opens."""
        ...

    def get_stats(self, article_ids: Iterable[str]) -> Dict[str, ArticleStats]:
        ...

    def increment_stat(self, article_id: str, field: str, by: int = 1) -> None:
        """Atomic counter increment on one stats field."""
        ...

    def put_stats(self, stats: ArticleStats) -> None:
        """Replace the recomputed aggregate row for one article."""
        ...

    def delete_articles_before(self, cutoff: datetime) -> List[str]:
        """Prune articles (and their stats) published before cutoff. Returns the deleted ids."""
        ...

    def count(self) -> int:
        ...


class InMemoryContentIndex:
    """
    Catalog held in process memory.

    A single lock guards stats so increments from concurrent feedback tasks are atomic.
    """

    def __init__(
        self,
        articles: Iterable[Article] = (),
        sources: Iterable[Source] = (),
        topics: Iterable[Topic] = (),
        stats: Iterable[ArticleStats] = (),
    ):
        self._lock = threading.Lock()
        self._articles: Dict[str, Article] = {a.id: a for a in articles}
        self._sources: Dict[str, Source] = {s.id: s for s in sources}
        self._topics: Dict[str, Topic] = {t.id: t for t in topics}
        self._stats: Dict[str, ArticleStats] = {s.article_id: s for s in stats}

    @classmethod
    def from_json(cls, path: Union[Path, str]) -> "InMemoryContentIndex":
        """Load {topics, sources, articles, stats?} from a catalog JSON file."""
        with open(path) as f:
            data = json.load(f)
        index = cls(
            articles=ensure_articles(data.get("articles", [])),
            sources=[Source.model_validate(s) for s in data.get("sources", [])],
            topics=[Topic.model_validate(t) for t in data.get("topics", [])],
            stats=[ArticleStats.model_validate(s) for s in data.get("stats", [])],
        )
        logger.info(
            "[catalog] loaded %s articles, %s sources, %s topics from %s",
            len(index._articles), len(index._sources), len(index._topics), path,
        )
        return index

    def count(self) -> int:
        return len(self._articles)

    def get_article(self, article_id: str) -> Optional[Article]:
        return self._articles.get(article_id)

    def get_articles(self, article_ids: Iterable[str]) -> Dict[str, Article]:
        return {aid: self._articles[aid] for aid in article_ids if aid in self._articles}

    def get_sources(self) -> Dict[str, Source]:
        return dict(self._sources)

    def get_topics(self) -> Dict[str, Topic]:
        return dict(self._topics)

    def article_counts_by_source(self) -> Dict[str, int]:
        return dict(Counter(a.source_id for a in self._snapshot()))

    def _snapshot(self) -> List[Article]:
        with self._lock:
            return list(self._articles.values())

    def _newest_first(self, articles: Iterable[Article], limit: Optional[int]) -> List[Article]:
        out = sorted(articles, key=lambda a: (a.published_at, a.id), reverse=True)
        return out[:limit] if limit is not None else out

    def articles_by_sources(self, source_ids: Iterable[str], since: datetime, limit: int) -> List[Article]:
        wanted = set(source_ids)
        if not wanted:
            return []
        return self._newest_first(
            (a for a in self._snapshot() if a.source_id in wanted and a.published_at >= since),
            limit,
        )

    def articles_by_topics(self, topic_ids: Iterable[str], since: datetime, limit: int) -> List[Article]:
        wanted = set(topic_ids)
        if not wanted:
            return []
        source_ids = {sid for sid, s in self._sources.items() if s.topics & wanted}
        return self.articles_by_sources(source_ids, since, limit)

    def recent_articles(
        self,
        since: datetime,
        limit: Optional[int] = None,
        preinstalled_only: bool = False,
    ) -> List[Article]:
        def _eligible(a: Article) -> bool:
            if a.published_at < since:
                return False
            if not preinstalled_only:
                return True
            source = self._sources.get(a.source_id)
            return source is not None and source.is_preinstalled

        return self._newest_first(filter(_eligible, self._snapshot()), limit)

    def engaged_articles(self, since: datetime) -> List[Tuple[Article, ArticleStats]]:
        with self._lock:
            stats = [s.model_copy() for s in self._stats.values() if s.likes > 0 or s.opens > 0]
        out = []
        for s in stats:
            article = self._articles.get(s.article_id)
            if article is not None and article.published_at >= since:
                out.append((article, s))
        return out

    def get_stats(self, article_ids: Iterable[str]) -> Dict[str, ArticleStats]:
        with self._lock:
            return {
                aid: self._stats[aid].model_copy()
                for aid in article_ids
                if aid in self._stats
            }

    def increment_stat(self, article_id: str, field: str, by: int = 1) -> None:
        if field not in STAT_FIELDS:
            raise ValueError(f"Unknown stats field: {field}")
        with self._lock:
            current = self._stats.get(article_id) or ArticleStats(article_id=article_id)
            self._stats[article_id] = current.model_copy(
                update={field: getattr(current, field) + by}
            )

    def put_stats(self, stats: ArticleStats) -> None:
        with self._lock:
            self._stats[stats.article_id] = stats

    def delete_articles_before(self, cutoff: datetime) -> List[str]:
        with self._lock:
            stale = [aid for aid, a in self._articles.items() if a.published_at < cutoff]
            for aid in stale:
                del self._articles[aid]
                self._stats.pop(aid, None)
        return stale

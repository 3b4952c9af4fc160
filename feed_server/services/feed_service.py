"""
Feed service: fetches every input of a feed request, runs the ranking pipeline,
materializes the result and serves pages from it.

Reads are issued concurrently (asyncio.to_thread over the synchronous stores).
The user's interest state, the source catalog and the SUBSCRIBED / TOPIC pools are
primary: if any of them fails the request fails with FeedUnavailableError.
Everything else (vector pool, trending pool, exploration pool, stats, content
vectors, seen set) degrades to an empty signal, is logged, and is recorded in the
algorithm_version suffix of the page.
"""

import asyncio
import logging
import random
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from ranking import rank_feed, select_trending
from ranking.models import (
    Article,
    CandidateSource,
    FeedPage,
    MaterializedFeed,
    RankingConfig,
    UserSignals,
)
from ranking.models.scoring import utcnow
from ranking.stages import paginate
from ranking.stages.candidate_pool import recency_cutoff

from .content_index import ContentIndex
from .errors import FeedUnavailableError
from .feed_cache import FeedCache
from .impression_ledger import ImpressionLedger
from .interest_store import InterestStore
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)

# Recent preinstalled articles scanned when building the exploration pool
EXPLORE_SCAN_LIMIT = 500


class FeedService:
    """Personalized feed: rank on page 1, slice the materialized list afterwards."""

    def __init__(
        self,
        content: ContentIndex,
        vectors: VectorIndex,
        interests: InterestStore,
        impressions: ImpressionLedger,
        config: RankingConfig,
        cache: Optional[FeedCache] = None,
        rng: Optional[random.Random] = None,
    ):
        self.content = content
        self.vectors = vectors
        self.interests = interests
        self.impressions = impressions
        self.config = config
        self.cache = cache or FeedCache()
        self._rng = rng or random.Random()

    async def get_feed(
        self,
        user_id: str,
        cursor: Optional[str] = None,
        feed_request_id: Optional[str] = None,
    ) -> FeedPage:
        """
        One page of the user's feed.

        Without a cursor a fresh ranking is materialized. With a cursor the page is
        sliced from the feed it belongs to (feed_request_id, else the user's latest);
        an expired or unknown cursor starts a fresh ranking.
        """
        if cursor:
            page = self._page_from_cache(user_id, cursor, feed_request_id)
            if page is not None:
                return page
            logger.info("[feed] CURSOR_UNKNOWN user=%s cursor=%s, re-ranking", user_id, cursor)
        feed = await self.build_feed(user_id)
        self.cache.put(feed)
        return paginate(feed, None, self.config.page_size)

    def _page_from_cache(
        self,
        user_id: str,
        cursor: str,
        feed_request_id: Optional[str],
    ) -> Optional[FeedPage]:
        if feed_request_id:
            feed = self.cache.get(feed_request_id)
        else:
            feed = self.cache.latest_for_user(user_id)
        if feed is None or feed.user_id != user_id:
            return None
        try:
            return paginate(feed, cursor, self.config.page_size)
        except KeyError:
            return None

    async def build_feed(self, user_id: str, now: Optional[datetime] = None) -> MaterializedFeed:
        """Fetch inputs, rank, and wrap the result under a new feed_request_id."""
        now = now or utcnow()
        config = self.config
        since = recency_cutoff(config, now)
        degraded: List[str] = []

        signals, sources = await self._load_primary_signals(user_id)

        primary = asyncio.gather(
            self._primary(
                "subscribed",
                self.content.articles_by_sources,
                signals.subscribed_source_ids, since, config.candidate_pool_size,
            ),
            self._primary(
                "topic",
                self.content.articles_by_topics,
                signals.positive_topic_ids, since, config.candidate_pool_size,
            ),
        )
        auxiliary = asyncio.gather(
            self._degradable("vector", degraded, self._vector_pool, signals, since),
            self._degradable("trending", degraded, self._trending_pool, now),
            self._degradable(
                "exploration", degraded,
                self.content.recent_articles, since, EXPLORE_SCAN_LIMIT, True,
            ),
            self._degradable(
                "seen", degraded,
                self.impressions.recent_article_ids,
                user_id, now - timedelta(hours=config.seen_window_hours),
            ),
        )
        (subscribed, topic), (vector_result, trending, recent, seen) = await asyncio.gather(
            primary, auxiliary
        )

        vector_articles, similarities = vector_result or ([], {})
        signals = signals.model_copy(update={"recently_shown_ids": set(seen or ())})
        pools: Dict[CandidateSource, List[Article]] = {
            CandidateSource.SUBSCRIBED: subscribed,
            CandidateSource.TOPIC: topic,
            CandidateSource.VECTOR: vector_articles,
            CandidateSource.TRENDING: trending or [],
        }

        pooled_ids = sorted({a.id for pool in pools.values() for a in pool})
        stats_by_id, vectors_by_id = await asyncio.gather(
            self._degradable("stats", degraded, self.content.get_stats, pooled_ids),
            self._degradable("content_vectors", degraded, self.vectors.fetch, pooled_ids),
        )

        items = rank_feed(
            pools,
            sources,
            signals,
            stats_by_id=stats_by_id or {},
            vectors_by_id=vectors_by_id or {},
            vector_similarities=similarities,
            recent_articles=recent or [],
            config=config,
            rng=self._rng,
            now=now,
        )

        algorithm_version = config.algorithm_version
        if degraded:
            algorithm_version = f"{algorithm_version}+degraded:{','.join(sorted(degraded))}"
        feed = MaterializedFeed(
            feed_request_id=uuid.uuid4().hex,
            user_id=user_id,
            items=items,
            algorithm_version=algorithm_version,
            created_at=now,
        )
        logger.info(
            "[feed] FEED_RANKED user=%s feed=%s items=%s pools=%s version=%s",
            user_id,
            feed.feed_request_id,
            len(items),
            {p.value: len(a) for p, a in pools.items()},
            algorithm_version,
        )
        return feed

    async def _load_primary_signals(self, user_id: str) -> Tuple[UserSignals, Dict]:
        """User interest state and the source catalog. Any failure is fatal."""
        interests = self.interests
        (
            topic_weights,
            affinities,
            subscriptions,
            hidden_sources,
            hidden_articles,
            interest_vector,
            sources,
        ) = await asyncio.gather(
            self._primary("topic_weights", interests.get_topic_weights, user_id),
            self._primary("source_affinities", interests.get_source_affinities, user_id),
            self._primary("subscriptions", interests.get_subscriptions, user_id),
            self._primary("hidden_sources", interests.get_hidden_sources, user_id),
            self._primary("hidden_articles", interests.get_hidden_articles, user_id),
            self._primary("interest_vector", interests.get_interest_vector, user_id),
            self._primary("sources", self.content.get_sources),
        )
        signals = UserSignals(
            user_id=user_id,
            topic_weights=topic_weights,
            source_affinities=affinities,
            subscribed_source_ids=subscriptions,
            hidden_source_ids=hidden_sources,
            hidden_article_ids=hidden_articles,
            interest_vector=interest_vector,
        )
        return signals, sources

    async def _primary(self, name: str, fn: Callable[..., Any], *args) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.error("[feed] PRIMARY_UNAVAILABLE source=%s error=%s", name, e)
            raise FeedUnavailableError(f"{name} unavailable") from e

    async def _degradable(self, name: str, degraded: List[str], fn: Callable[..., Any], *args) -> Any:
        """Run fn in a worker thread; on failure record the signal as degraded and return None."""
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.warning("[degraded] POOL_UNAVAILABLE pool=%s error=%s", name, e)
            degraded.append(name)
            return None

    def _vector_pool(
        self, signals: UserSignals, since: datetime
    ) -> Tuple[List[Article], Dict[str, float]]:
        """Nearest recent neighbours of the interest vector, with similarity = 1 - distance."""
        if signals.interest_vector is None or not signals.interest_vector.vector:
            return [], {}
        matches = self.vectors.query(
            signals.interest_vector.vector, self.config.vector_top_k, published_after=since
        )
        similarities = {aid: 1.0 - distance for aid, distance in matches}
        by_id = self.content.get_articles([aid for aid, _ in matches])
        articles = [by_id[aid] for aid, _ in matches if aid in by_id]
        return articles, similarities

    def _trending_pool(self, now: datetime) -> List[Article]:
        since = now - timedelta(days=self.config.trending_window_days)
        return select_trending(self.content.engaged_articles(since), self.config, now)

    def cached_feed_count(self) -> int:
        return len(self.cache)

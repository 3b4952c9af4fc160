"""
Onboarding and explicit source preferences.

Onboarding seeds a new user's interest state from chosen topics: weight 1.0 per
topic, subscriptions to preinstalled sources in those topics, and an initial
interest vector from recent articles in those topics.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ranking.feedback import mean_vector
from ranking.models import RankingConfig
from ranking.models.scoring import utcnow

from .content_index import ContentIndex
from .errors import InvalidOnboardingError, UnknownSourceError
from .interest_store import InterestStore
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)

MIN_ONBOARDING_TOPICS = 3
ONBOARDING_TOPIC_WEIGHT = 1.0
MAX_AUTO_SUBSCRIPTIONS = 15
SEED_VECTOR_ARTICLES = 100


class OnboardingService:
    def __init__(
        self,
        content: ContentIndex,
        vectors: VectorIndex,
        interests: InterestStore,
        config: RankingConfig,
    ):
        self.content = content
        self.vectors = vectors
        self.interests = interests
        self.config = config

    def onboard(self, user_id: str, topic_slugs: Iterable[str], now: Optional[datetime] = None) -> Dict:
        """
        Apply onboarding choices. Unknown slugs are ignored; fewer than three known
        topics raises InvalidOnboardingError before anything is written.
        """
        wanted = {s.strip().lower() for s in topic_slugs if s and s.strip()}
        topic_ids = sorted(t.id for t in self.content.get_topics().values() if t.slug in wanted)
        if len(topic_ids) < MIN_ONBOARDING_TOPICS:
            raise InvalidOnboardingError(
                f"Choose at least {MIN_ONBOARDING_TOPICS} known topics (got {len(topic_ids)})"
            )

        self.interests.set_topic_weights(user_id, {tid: ONBOARDING_TOPIC_WEIGHT for tid in topic_ids})

        chosen = set(topic_ids)
        sources = sorted(
            (s for s in self.content.get_sources().values() if s.is_preinstalled and s.topics & chosen),
            key=lambda s: (s.title.lower(), s.id),
        )
        subscribed = [s.id for s in sources[:MAX_AUTO_SUBSCRIPTIONS]]
        self.interests.subscribe(user_id, subscribed)

        seeded = self._seed_interest_vector(user_id, topic_ids, now or utcnow())
        logger.info(
            "[onboarding] ONBOARDED user=%s topics=%s subscribed=%s vector_seeded=%s",
            user_id, len(topic_ids), len(subscribed), seeded,
        )
        return {"topic_ids": topic_ids, "subscribed_source_ids": subscribed, "vector_seeded": seeded}

    def _seed_interest_vector(self, user_id: str, topic_ids: List[str], now: datetime) -> bool:
        """Mean of recent topic article vectors, only if the user has no vector yet."""
        if self.interests.get_interest_vector(user_id) is not None:
            return False
        since = now - timedelta(days=self.config.max_age_days)
        try:
            articles = self.content.articles_by_topics(topic_ids, since, SEED_VECTOR_ARTICLES)
            vectors = self.vectors.fetch([a.id for a in articles])
        except Exception as e:
            logger.warning("[degraded] POOL_UNAVAILABLE pool=onboarding_vectors error=%s", e)
            return False
        seed = mean_vector(list(vectors.values()))
        if seed is None:
            return False
        return self.interests.replace_interest_vector(
            user_id, None, seed, self.config.interest_vector_model
        )

    def subscribe_source(self, user_id: str, source_id: str) -> None:
        if source_id not in self.content.get_sources():
            raise UnknownSourceError(source_id)
        self.interests.subscribe(user_id, [source_id])
        logger.info("[sources] SUBSCRIBED user=%s source=%s", user_id, source_id)

    def hide_source(self, user_id: str, source_id: str) -> None:
        if source_id not in self.content.get_sources():
            raise UnknownSourceError(source_id)
        self.interests.hide_source(user_id, source_id)
        logger.info("[sources] HIDDEN user=%s source=%s", user_id, source_id)

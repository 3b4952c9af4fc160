"""
Feedback processor: turns one interaction into updates of the user's interest
state and the article's engagement counters.

Steps, each applied at most once per event id and isolated from the others:
    counters         likes / saves increment on the article stats
    topics           +/- topic_weight_delta on every topic of the article's source
    source_affinity  +/- source_affinity_delta on the article's source
    interest_vector  EMA step toward (or away from) the article vector

A failing step is logged and released so a retry of the same event can apply it;
the other steps still run. Updates only affect later feed requests.
"""

import logging
from typing import Callable, Optional

from ranking.feedback import plan_feedback, update_vector
from ranking.models import InteractionEvent, InteractionType, RankingConfig

from .content_index import ContentIndex
from .errors import UnknownArticleError
from .interaction_log import InteractionLog
from .interest_store import InterestStore
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)

# Compare-and-set attempts for one interest vector update
MAX_VECTOR_CAS_ATTEMPTS = 5


def scoped_event_id(user_id: str, event_id: str) -> str:
    """Event id namespaced by user; keys the log row and the step markers."""
    return f"{user_id}:{event_id}"


class FeedbackProcessor:
    def __init__(
        self,
        content: ContentIndex,
        vectors: VectorIndex,
        interests: InterestStore,
        interactions: InteractionLog,
        config: RankingConfig,
    ):
        self.content = content
        self.vectors = vectors
        self.interests = interests
        self.interactions = interactions
        self.config = config

    def record_interaction(
        self,
        user_id: str,
        article_id: str,
        interaction_type: InteractionType,
        value: Optional[float] = None,
        event_id: Optional[str] = None,
    ) -> InteractionEvent:
        """
        Validate and append the event. Raises UnknownArticleError before any write.

        A client event_id is scoped to the user, so two users can never collide on
        it. A retry of an already logged event is not logged again; the returned
        event still carries the same id, so feedback steps skip what was applied.

        HIDE also adds the article to the user's hidden set, which takes effect on
        the next ranking.
        """
        if self.content.get_article(article_id) is None:
            raise UnknownArticleError(article_id)
        fields = dict(user_id=user_id, article_id=article_id, type=interaction_type, value=value)
        if event_id:
            fields["id"] = scoped_event_id(user_id, event_id)
        event = InteractionEvent(**fields)
        if not self.interactions.append(event):
            logger.info("[feedback] DUPLICATE_EVENT event=%s user=%s", event.id, user_id)
            return event
        if interaction_type == InteractionType.HIDE:
            self.interests.hide_article(user_id, article_id)
        logger.info(
            "[feedback] INTERACTION_RECORDED event=%s user=%s article=%s type=%s value=%s",
            event.id, user_id, article_id, interaction_type.value, value,
        )
        return event

    def apply_preferences(self, event: InteractionEvent) -> None:
        """Counters, topic weights and source affinity for one event."""
        plan = plan_feedback(event, self.config)
        article = self.content.get_article(event.article_id)
        if article is None:
            logger.warning("[feedback] ARTICLE_MISSING event=%s article=%s", event.id, event.article_id)
            return

        if plan.increment_likes or plan.increment_saves:
            field = "likes" if plan.increment_likes else "saves"
            self._run_step(event, "counters", lambda: self.content.increment_stat(article.id, field))

        if not plan.updates_preferences:
            return
        config = self.config

        def _topics() -> None:
            source = self.content.get_sources().get(article.source_id)
            if source is None or not source.topics:
                return
            self.interests.add_topic_weights(
                event.user_id, source.topics, plan.topic_delta, config.weight_min, config.weight_max
            )

        def _source_affinity() -> None:
            self.interests.add_source_affinity(
                event.user_id, article.source_id, plan.source_delta, config.weight_min, config.weight_max
            )

        self._run_step(event, "topics", _topics)
        self._run_step(event, "source_affinity", _source_affinity)

    def apply_interest_vector(self, event: InteractionEvent) -> None:
        """Interest vector EMA step; runs after the HTTP response as a background task."""
        plan = plan_feedback(event, self.config)
        if not plan.updates_vector:
            return
        self._run_step(event, "interest_vector", lambda: self._update_vector(event, plan.weight))

    def process(self, event: InteractionEvent) -> None:
        """All steps, in order. Used by jobs and tests; the route splits them."""
        self.apply_preferences(event)
        self.apply_interest_vector(event)

    def _update_vector(self, event: InteractionEvent, weight: float) -> None:
        article_vector = self.vectors.fetch([event.article_id]).get(event.article_id)
        if not article_vector:
            logger.info("[feedback] VECTOR_SKIPPED event=%s reason=no_article_vector", event.id)
            return
        for _ in range(MAX_VECTOR_CAS_ATTEMPTS):
            current = self.interests.get_interest_vector(event.user_id)
            new_vector = update_vector(
                current.vector if current is not None else None,
                article_vector,
                weight,
                self.config,
            )
            if new_vector is None:
                logger.info("[feedback] VECTOR_SKIPPED event=%s reason=degenerate", event.id)
                return
            expected = current.version if current is not None else None
            if self.interests.replace_interest_vector(
                event.user_id, expected, new_vector, self.config.interest_vector_model
            ):
                logger.debug(
                    "[feedback] VECTOR_UPDATED user=%s version=%s", event.user_id, (expected or 0) + 1
                )
                return
        raise RuntimeError(
            f"interest vector for {event.user_id} changed concurrently {MAX_VECTOR_CAS_ATTEMPTS} times"
        )

    def _run_step(self, event: InteractionEvent, step: str, fn: Callable[[], None]) -> bool:
        """Claim (event, step), run fn, release the claim on failure. Never raises."""
        try:
            if not self.interests.claim_event_step(event.id, step):
                logger.info("[feedback] STEP_ALREADY_APPLIED event=%s step=%s", event.id, step)
                return False
        except Exception:
            logger.exception("[feedback] STEP_FAILED event=%s step=%s (claim)", event.id, step)
            return False
        try:
            fn()
            return True
        except Exception:
            logger.exception("[feedback] STEP_FAILED event=%s step=%s", event.id, step)
            try:
                self.interests.release_event_step(event.id, step)
            except Exception:
                logger.exception("[feedback] RELEASE_FAILED event=%s step=%s", event.id, step)
            return False

"""Application state: stores, ranking config and the services built on them."""

import logging
import random
from pathlib import Path
from typing import Any, Optional

from ranking.models import RankingConfig

from .config import ServerConfig, get_config
from .services import (
    CatalogService,
    EmbeddingGenerator,
    FeedbackProcessor,
    FeedCache,
    FeedService,
    FirestoreImpressionLedger,
    FirestoreInteractionLog,
    FirestoreInterestStore,
    InMemoryContentIndex,
    InMemoryImpressionLedger,
    InMemoryInteractionLog,
    InMemoryInterestStore,
    InMemoryVectorIndex,
    OnboardingService,
    PineconeVectorIndex,
    PublicFeedService,
)

logger = logging.getLogger(__name__)


class AppState:
    """
    Global application state.

    Stores are chosen from config (memory | firebase, Pinecone when a key is set);
    any store can be passed in directly, which is how tests wire fakes.
    """

    def __init__(
        self,
        config: ServerConfig,
        ranking_config: Optional[RankingConfig] = None,
        content: Any = None,
        vectors: Any = None,
        interests: Any = None,
        interactions: Any = None,
        impressions: Any = None,
        embedder: Any = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.ranking_config = ranking_config or config.load_ranking_config()

        self.content = content if content is not None else self._create_content_index(config)
        self.vectors = vectors if vectors is not None else self._create_vector_index(config)
        if interests is None or interactions is None or impressions is None:
            default_interests, default_interactions, default_impressions = self._create_user_stores(config)
            interests = interests if interests is not None else default_interests
            interactions = interactions if interactions is not None else default_interactions
            impressions = impressions if impressions is not None else default_impressions
        self.interests = interests
        self.interactions = interactions
        self.impressions = impressions
        self.embedder = embedder if embedder is not None else self._create_embedder(config)

        for name in ("content", "vectors", "interests", "interactions", "impressions"):
            logger.info("[startup] %s store: %s", name, type(getattr(self, name)).__name__)

        self.feed_cache = FeedCache(
            ttl_seconds=config.feed_cache_ttl_seconds,
            max_entries=config.feed_cache_max_entries,
        )
        self.feed_service = FeedService(
            self.content,
            self.vectors,
            self.interests,
            self.impressions,
            self.ranking_config,
            cache=self.feed_cache,
            rng=rng,
        )
        self.feedback = FeedbackProcessor(
            self.content, self.vectors, self.interests, self.interactions, self.ranking_config
        )
        self.onboarding = OnboardingService(
            self.content, self.vectors, self.interests, self.ranking_config
        )
        self.public_feed = PublicFeedService(self.content, self.ranking_config)
        self.catalog = CatalogService(self.content, self.interests)

    def _create_content_index(self, config: ServerConfig) -> InMemoryContentIndex:
        """Catalog from CATALOG_JSON_PATH, else an empty index."""
        if config.catalog_json_path:
            if Path(config.catalog_json_path).is_file():
                return InMemoryContentIndex.from_json(config.catalog_json_path)
            logger.warning("[startup] catalog not found: %s, starting empty", config.catalog_json_path)
        return InMemoryContentIndex()

    def _create_vector_index(self, config: ServerConfig) -> Any:
        """Pinecone when PINECONE_API_KEY is set, else in-memory."""
        if config.pinecone_api_key:
            return PineconeVectorIndex(
                api_key=config.pinecone_api_key,
                index_name=config.pinecone_index_name,
            )
        return InMemoryVectorIndex()

    def _create_user_stores(self, config: ServerConfig) -> tuple:
        """Firestore when DATA_SOURCE=firebase and credentials exist, else in-memory."""
        if config.data_source == "firebase":
            cred_path = Path(config.firebase_credentials_path) if config.firebase_credentials_path else None
            if cred_path is None or not cred_path.is_file():
                logger.warning(
                    "[startup] Firestore stores skipped: credentials file not found (%s)", cred_path
                )
            else:
                try:
                    kwargs = dict(project_id=config.firebase_project_id, credentials_path=cred_path)
                    return (
                        FirestoreInterestStore(**kwargs),
                        FirestoreInteractionLog(**kwargs),
                        FirestoreImpressionLedger(**kwargs),
                    )
                except Exception as e:
                    logger.warning("[startup] Firestore init failed: %s, using in-memory stores", e)
        return InMemoryInterestStore(), InMemoryInteractionLog(), InMemoryImpressionLedger()

    def _create_embedder(self, config: ServerConfig) -> Optional[EmbeddingGenerator]:
        if config.openai_api_key:
            return EmbeddingGenerator(api_key=config.openai_api_key)
        return None


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = AppState(get_config())
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Replace the global state (tests inject a pre-wired AppState; None resets)."""
    global _state
    _state = state

"""Backing logic: stores, abstractions and the feed, feedback and job services."""

from .catalog import CatalogService
from .content_index import ContentIndex, InMemoryContentIndex
from .embedding_generator import (
    EmbeddingGenerator,
    EmbeddingProvider,
    EmbeddingResult,
    check_openai_available,
    generate_for_articles,
)
from .errors import (
    FeedError,
    FeedUnavailableError,
    InvalidOnboardingError,
    UnknownArticleError,
    UnknownSourceError,
    UnknownTopicError,
)
from .feed_cache import FeedCache
from .feed_service import FeedService
from .feedback_processor import FeedbackProcessor
from .firestore_stores import (
    FirestoreImpressionLedger,
    FirestoreInteractionLog,
    FirestoreInterestStore,
)
from .impression_ledger import ImpressionLedger, InMemoryImpressionLedger
from .interaction_log import InMemoryInteractionLog, InteractionLog
from .interest_store import InMemoryInterestStore, InterestStore
from .maintenance import run_cleanup_job, run_embedding_job, run_stats_job
from .onboarding import OnboardingService
from .pinecone_store import PineconeVectorIndex
from .public_feed import PublicFeedService
from .vector_index import InMemoryVectorIndex, VectorIndex

__all__ = [
    "CatalogService",
    "ContentIndex",
    "EmbeddingGenerator",
    "EmbeddingProvider",
    "EmbeddingResult",
    "FeedCache",
    "FeedError",
    "FeedService",
    "FeedUnavailableError",
    "FeedbackProcessor",
    "FirestoreImpressionLedger",
    "FirestoreInteractionLog",
    "FirestoreInterestStore",
    "ImpressionLedger",
    "InMemoryContentIndex",
    "InMemoryImpressionLedger",
    "InMemoryInteractionLog",
    "InMemoryInterestStore",
    "InMemoryVectorIndex",
    "InteractionLog",
    "InterestStore",
    "InvalidOnboardingError",
    "OnboardingService",
    "PineconeVectorIndex",
    "PublicFeedService",
    "UnknownArticleError",
    "UnknownSourceError",
    "UnknownTopicError",
    "VectorIndex",
    "check_openai_available",
    "generate_for_articles",
    "run_cleanup_job",
    "run_embedding_job",
    "run_stats_job",
]

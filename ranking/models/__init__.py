"""Data models for the ranking engine."""

from .article import Article, ArticleStats, ArticleVector, Source, Topic, ensure_articles
from .config import DEFAULT_CONFIG, RankingConfig, resolve_config
from .feed import FeedPage, ImpressionEvent, MaterializedFeed
from .interest import (
    InteractionEvent,
    InteractionType,
    UserInterestVector,
    UserSignals,
    UserSourceAffinity,
    UserTopicWeight,
)
from .scoring import Candidate, CandidateSource, ScoreBreakdown, ScoredArticle

__all__ = [
    "Article",
    "ArticleStats",
    "ArticleVector",
    "Candidate",
    "CandidateSource",
    "DEFAULT_CONFIG",
    "FeedPage",
    "ImpressionEvent",
    "InteractionEvent",
    "InteractionType",
    "MaterializedFeed",
    "RankingConfig",
    "ScoreBreakdown",
    "ScoredArticle",
    "Source",
    "Topic",
    "UserInterestVector",
    "UserSignals",
    "UserSourceAffinity",
    "UserTopicWeight",
    "ensure_articles",
    "resolve_config",
]

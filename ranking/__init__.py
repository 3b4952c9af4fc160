"""
Feed Ranking Engine: hybrid candidate retrieval, blended scoring, MMR diversity.

Single entry point for the ranking package:
- models/: RankingConfig, Article, Source, UserSignals, ScoredArticle, feed models
- stages/: candidate_pool (Stage A), scoring (Stage B), diversity (Stage C),
  exploration (Stage D), orchestrator, pagination
- feedback/: interaction weights and the interest-vector update
- embedding/: get_embed_text, model constants

Everything here is pure: no I/O, no clocks except where a `now` is not supplied.
"""

from .embedding import EMBEDDING_DIMENSIONS, EMBEDDING_MODEL, STRATEGY_VERSION, get_embed_text
from .feedback import (
    FeedbackPlan,
    clamp,
    initial_vector,
    interaction_weight,
    mean_vector,
    plan_feedback,
    update_vector,
)
from .models import (
    DEFAULT_CONFIG,
    Article,
    ArticleStats,
    ArticleVector,
    Candidate,
    CandidateSource,
    FeedPage,
    ImpressionEvent,
    InteractionEvent,
    InteractionType,
    MaterializedFeed,
    RankingConfig,
    ScoreBreakdown,
    ScoredArticle,
    Source,
    Topic,
    UserInterestVector,
    UserSignals,
    resolve_config,
)
from .stages import (
    inject_exploration,
    merge_candidate_pools,
    paginate,
    rank_feed,
    rerank_with_constraints,
    score_candidates,
    select_exploration_pool,
    select_trending,
)

__all__ = [
    "Article",
    "ArticleStats",
    "ArticleVector",
    "Candidate",
    "CandidateSource",
    "DEFAULT_CONFIG",
    "EMBEDDING_DIMENSIONS",
    "EMBEDDING_MODEL",
    "FeedPage",
    "FeedbackPlan",
    "ImpressionEvent",
    "InteractionEvent",
    "InteractionType",
    "MaterializedFeed",
    "RankingConfig",
    "STRATEGY_VERSION",
    "ScoreBreakdown",
    "ScoredArticle",
    "Source",
    "Topic",
    "UserInterestVector",
    "UserSignals",
    "clamp",
    "get_embed_text",
    "initial_vector",
    "inject_exploration",
    "interaction_weight",
    "mean_vector",
    "merge_candidate_pools",
    "paginate",
    "plan_feedback",
    "rank_feed",
    "rerank_with_constraints",
    "resolve_config",
    "score_candidates",
    "select_exploration_pool",
    "select_trending",
    "update_vector",
]

"""Ranking pipeline stages: candidates, scoring, diversity, exploration, pagination."""

from .candidate_pool import merge_candidate_pools, select_trending, trending_score
from .diversity import rerank_with_constraints, topic_overlap
from .exploration import inject_exploration, select_exploration_pool
from .orchestrator import rank_feed
from .pagination import paginate
from .scoring import score_candidate, score_candidates, topic_relevance

__all__ = [
    "inject_exploration",
    "merge_candidate_pools",
    "paginate",
    "rank_feed",
    "rerank_with_constraints",
    "score_candidate",
    "score_candidates",
    "select_exploration_pool",
    "select_trending",
    "topic_overlap",
    "topic_relevance",
    "trending_score",
]

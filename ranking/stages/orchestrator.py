"""
Pipeline orchestrator: runs candidate merge, scoring, diversity reranking and
exploration to produce the full ranked list for one feed request.

The main entry point is rank_feed. It is pure: all inputs are fetched by the caller
(the feed service), and nothing is written back.
"""

import random
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models.article import Article, ArticleStats, Source
from ..models.config import RankingConfig, resolve_config
from ..models.interest import UserSignals
from ..models.scoring import Candidate, CandidateSource, ScoredArticle, utcnow
from .candidate_pool import merge_candidate_pools
from .diversity import rerank_with_constraints
from .exploration import inject_exploration, select_exploration_pool
from .scoring import score_candidates


def _retrieve_candidates(
    pools: Mapping[CandidateSource, List[Article]],
    sources: Mapping[str, Source],
    signals: UserSignals,
    vector_similarities: Optional[Dict[str, float]],
    config: RankingConfig,
    now: datetime,
) -> List[Candidate]:
    """Stage A: merge retrieval pools into tagged candidates."""
    return merge_candidate_pools(pools, sources, signals, vector_similarities, config, now)


def _explore(
    reranked: List[ScoredArticle],
    recent_articles: Optional[Iterable[Article]],
    sources: Mapping[str, Source],
    signals: UserSignals,
    config: RankingConfig,
    rng: Optional[random.Random],
) -> List[ScoredArticle]:
    """Stage D: splice exploration items; no recent articles means no exploration."""
    if not recent_articles:
        return list(reranked)
    selected_sources = {item.article.source_id for item in reranked}
    explore_pool = select_exploration_pool(
        recent_articles, sources, signals, selected_sources, config, rng
    )
    return inject_exploration(reranked, explore_pool, sources, config)


def rank_feed(
    pools: Mapping[CandidateSource, List[Article]],
    sources: Mapping[str, Source],
    signals: UserSignals,
    stats_by_id: Optional[Mapping[str, ArticleStats]] = None,
    vectors_by_id: Optional[Mapping[str, Sequence[float]]] = None,
    vector_similarities: Optional[Dict[str, float]] = None,
    recent_articles: Optional[Iterable[Article]] = None,
    config: Optional[RankingConfig] = None,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[ScoredArticle]:
    """
    Produce the ranked feed (Stage A → B → C → D).

    Args:
        pools: Articles per retrieval pool. Missing pools contribute nothing.
        sources: source_id -> Source for every source referenced by the pools.
        signals: The user's signal snapshot for this request.
        stats_by_id: article_id -> ArticleStats (quality score).
        vectors_by_id: article_id -> content vector (diversity penalty).
        vector_similarities: article_id -> cosine to the user's interest vector.
        recent_articles: Newest-first recent articles for the exploration pool.
        rng: Random source for the exploration shuffle; inject a seeded one in tests.

    Returns:
        Ordered list of ScoredArticle, capped at max_ranked_items plus exploration items.
    """
    config = resolve_config(config)
    now = now or utcnow()

    # Stage A: Candidate generation
    candidates = _retrieve_candidates(pools, sources, signals, vector_similarities, config, now)

    # Stage B: Scoring
    scored = score_candidates(candidates, signals, stats_by_id or {}, config, now)

    # Stage C: Diversity reranking
    reranked = rerank_with_constraints(scored, vectors_by_id, config)

    # Stage D: Exploration
    return _explore(reranked, recent_articles, sources, signals, config, rng)

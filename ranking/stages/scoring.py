"""
Per-candidate multi-signal scoring.

Builds a ScoredArticle for one candidate from the user's signal snapshot and the
article's stats. Every signal is kept on the breakdown next to the final score:

    score = w_rel * max(topic_relevance, vector_similarity)
          + w_fresh * freshness + w_sub * subscribed + w_aff * source_affinity
          + w_qual * quality_score - w_seen * seen_penalty
"""

from datetime import datetime
from typing import Iterable, List, Mapping, Optional

from ..models.article import ArticleStats, Source
from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.interest import UserSignals
from ..models.scoring import (
    Candidate,
    ScoreBreakdown,
    ScoredArticle,
    freshness_score,
    utcnow,
)


def topic_relevance(source: Source, topic_weights: Mapping[str, float]) -> float:
    """Mean of the user's positive weights over the source's topics, else 0."""
    positive = [
        topic_weights[tid]
        for tid in source.topics
        if topic_weights.get(tid, 0.0) > 0
    ]
    return sum(positive) / len(positive) if positive else 0.0


def build_breakdown(
    candidate: Candidate,
    signals: UserSignals,
    stats: Optional[ArticleStats],
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> ScoreBreakdown:
    """Compute every scoring signal for one candidate."""
    article = candidate.article
    affinity = signals.source_affinities.get(article.source_id, 0.0)
    quality = stats.quality_score if stats is not None and stats.quality_score is not None else 0.0
    return ScoreBreakdown(
        topic_relevance=topic_relevance(candidate.source, signals.topic_weights),
        vector_similarity=candidate.vector_similarity,
        freshness=freshness_score(
            article,
            tau_hours=config.freshness_tau_hours,
            estimated_value=config.estimated_date_freshness,
            now=now,
        ),
        subscribed=1.0 if article.source_id in signals.subscribed_source_ids else 0.0,
        source_affinity=max(0.0, min(1.0, affinity)),
        quality_score=quality,
        seen_penalty=1.0 if article.id in signals.recently_shown_ids else 0.0,
    )


def combine(breakdown: ScoreBreakdown, config: RankingConfig = DEFAULT_CONFIG) -> float:
    """Weighted combination of the breakdown into the scalar score."""
    return (
        config.weight_relevance * max(breakdown.topic_relevance, breakdown.vector_similarity)
        + config.weight_freshness * breakdown.freshness
        + config.weight_subscribed * breakdown.subscribed
        + config.weight_affinity * breakdown.source_affinity
        + config.weight_quality * breakdown.quality_score
        - config.weight_seen_penalty * breakdown.seen_penalty
    )


def score_candidate(
    candidate: Candidate,
    signals: UserSignals,
    stats: Optional[ArticleStats],
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> ScoredArticle:
    breakdown = build_breakdown(candidate, signals, stats, config, now)
    return ScoredArticle(
        article=candidate.article,
        source=candidate.source,
        score=combine(breakdown, config),
        breakdown=breakdown,
        candidate_sources=list(candidate.candidate_sources),
    )


def score_candidates(
    candidates: Iterable[Candidate],
    signals: UserSignals,
    stats_by_id: Mapping[str, ArticleStats],
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> List[ScoredArticle]:
    """
    Score every candidate and return them sorted by score (desc), then article id.

    now is fixed once per call so every candidate sees the same clock.
    """
    now = now or utcnow()
    scored = [
        score_candidate(c, signals, stats_by_id.get(c.article.id), config, now)
        for c in candidates
    ]
    scored.sort(key=lambda s: (-s.score, s.article.id))
    return scored

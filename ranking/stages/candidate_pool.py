"""
Candidate Generation: merge the retrieval pools into one tagged candidate list.

Pools: subscribed sources, positive-weight topics, vector neighbours, trending.
Filters: recency cutoff, hidden articles, hidden sources, unknown sources.
Returns candidates newest first, deduplicated, capped at candidate_pool_size.

The public entry points are merge_candidate_pools and select_trending.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..models.article import Article, ArticleStats, Source
from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.interest import UserSignals
from ..models.scoring import Candidate, CandidateSource, utcnow

logger = logging.getLogger(__name__)

POOL_ORDER = (
    CandidateSource.SUBSCRIBED,
    CandidateSource.TOPIC,
    CandidateSource.VECTOR,
    CandidateSource.TRENDING,
)


def recency_cutoff(config: RankingConfig, now: Optional[datetime] = None) -> datetime:
    """Oldest publish time eligible for ranking."""
    return (now or utcnow()) - timedelta(days=config.max_age_days)


def _is_excluded(article: Article, signals: UserSignals) -> bool:
    """True if the user hid this article or its source."""
    return (
        article.id in signals.hidden_article_ids
        or article.source_id in signals.hidden_source_ids
    )


def _published_after(article: Article, cutoff: datetime) -> bool:
    published = article.published_at
    if published.tzinfo is None:
        published = published.replace(tzinfo=cutoff.tzinfo)
    return published >= cutoff


def trending_score(stats: ArticleStats, config: RankingConfig = DEFAULT_CONFIG) -> float:
    """Weighted engagement sum: likes*3 + saves*5 + opens."""
    return (
        stats.likes * config.trending_weight_like
        + stats.saves * config.trending_weight_save
        + stats.opens * config.trending_weight_open
    )


def select_trending(
    engaged: Iterable[Tuple[Article, ArticleStats]],
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> List[Article]:
    """
    Articles from the trailing trending window with nonzero likes or opens,
    ranked by trending_score (ties: newest first), capped at trending_limit.
    """
    cutoff = (now or utcnow()) - timedelta(days=config.trending_window_days)
    rows = [
        (article, stats)
        for article, stats in engaged
        if (stats.likes > 0 or stats.opens > 0) and _published_after(article, cutoff)
    ]
    rows.sort(
        key=lambda row: (trending_score(row[1], config), row[0].published_at),
        reverse=True,
    )
    return [article for article, _ in rows[: config.trending_limit]]


def merge_candidate_pools(
    pools: Mapping[CandidateSource, List[Article]],
    sources: Mapping[str, Source],
    signals: UserSignals,
    vector_similarities: Optional[Dict[str, float]] = None,
    config: RankingConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None,
) -> List[Candidate]:
    """
    Union the pools into deduplicated candidates, tagging each with every pool it came from.

    Pools missing from the mapping (unavailable or skipped) contribute nothing.
    Hidden articles and articles from hidden sources are always excluded.
    """
    vector_similarities = vector_similarities or {}
    cutoff = recency_cutoff(config, now)
    by_id: Dict[str, Candidate] = {}
    unknown_sources: Set[str] = set()

    for pool in POOL_ORDER:
        for article in pools.get(pool) or []:
            existing = by_id.get(article.id)
            if existing is not None:
                existing.tag(pool)
                continue
            if _is_excluded(article, signals) or not _published_after(article, cutoff):
                continue
            source = sources.get(article.source_id)
            if source is None:
                unknown_sources.add(article.source_id)
                continue
            candidate = Candidate(
                article=article,
                source=source,
                candidate_sources=[pool],
                vector_similarity=vector_similarities.get(article.id, 0.0),
            )
            by_id[article.id] = candidate

    if unknown_sources:
        logger.warning(
            "[candidates] SOURCE_MISSING skipped articles from %s unknown sources",
            len(unknown_sources),
        )

    candidates = sorted(
        by_id.values(),
        key=lambda c: (c.article.published_at, c.article.id),
        reverse=True,
    )
    return candidates[: config.candidate_pool_size]

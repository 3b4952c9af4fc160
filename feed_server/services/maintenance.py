"""
Maintenance jobs: stats aggregation, retention cleanup, article embeddings.

Each job is a plain function over the stores, triggered by POST /api/jobs/*
(an external scheduler calls them) and returning a summary dict.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from ranking.models import ArticleStats, InteractionType, RankingConfig
from ranking.models.scoring import utcnow

from .content_index import ContentIndex
from .embedding_generator import EmbeddingProvider, generate_for_articles
from .impression_ledger import ImpressionLedger
from .interaction_log import InteractionLog
from .interest_store import InterestStore
from .vector_index import VectorIndex

logger = logging.getLogger(__name__)

IMPRESSION_RETENTION_DAYS = 90
INTERACTION_RETENTION_DAYS = 180
ARTICLE_RETENTION_DAYS = 60
EMBEDDING_BATCH_LIMIT = 50


def compute_article_stats(
    article_id: str,
    impressions: int,
    opens: int,
    likes: int,
    saves: int,
) -> ArticleStats:
    """ctr = opens / impressions; quality = min(1, (2*likes + 3*saves + opens) / (3*impressions))."""
    if impressions > 0:
        ctr: Optional[float] = opens / impressions
        quality: Optional[float] = min(1.0, (likes * 2 + saves * 3 + opens) / (impressions * 3))
    else:
        ctr = None
        quality = None
    return ArticleStats(
        article_id=article_id,
        impressions=impressions,
        opens=opens,
        likes=likes,
        saves=saves,
        ctr=ctr,
        quality_score=quality,
    )


def run_stats_job(
    content: ContentIndex,
    impressions: ImpressionLedger,
    interactions: InteractionLog,
    config: RankingConfig,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Recompute stats for every article inside the ranking recency window."""
    now = now or utcnow()
    articles = content.recent_articles(now - timedelta(days=config.max_age_days))
    ids = [a.id for a in articles]
    impression_counts = impressions.count_by_article(ids)
    interaction_counts = interactions.count_by_article(ids)
    for aid in ids:
        counts = interaction_counts.get(aid, {})
        content.put_stats(
            compute_article_stats(
                aid,
                impressions=impression_counts.get(aid, 0),
                opens=counts.get(InteractionType.OPEN, 0),
                likes=counts.get(InteractionType.LIKE, 0),
                saves=counts.get(InteractionType.SAVE, 0),
            )
        )
    logger.info("[jobs] STATS_UPDATED articles=%s", len(ids))
    return {"articles_updated": len(ids)}


def run_cleanup_job(
    content: ContentIndex,
    vectors: VectorIndex,
    interests: InterestStore,
    impressions: ImpressionLedger,
    interactions: InteractionLog,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Delete impressions, interactions and articles past their retention windows.

    Vectors of deleted articles go with them. Feedback step markers are kept as
    long as the interactions they belong to.
    """
    now = now or utcnow()
    interaction_cutoff = now - timedelta(days=INTERACTION_RETENTION_DAYS)
    deleted_articles = content.delete_articles_before(now - timedelta(days=ARTICLE_RETENTION_DAYS))
    if deleted_articles:
        vectors.delete(deleted_articles)
    result = {
        "impressions_deleted": impressions.delete_before(now - timedelta(days=IMPRESSION_RETENTION_DAYS)),
        "interactions_deleted": interactions.delete_before(interaction_cutoff),
        "event_steps_pruned": interests.prune_event_steps(interaction_cutoff),
        "articles_deleted": len(deleted_articles),
    }
    logger.info("[jobs] CLEANUP %s", result)
    return result


def run_embedding_job(
    content: ContentIndex,
    vectors: VectorIndex,
    provider: EmbeddingProvider,
    config: RankingConfig,
    limit: int = EMBEDDING_BATCH_LIMIT,
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """Embed up to limit recent articles that have no vector yet, newest first."""
    now = now or utcnow()
    recent = content.recent_articles(now - timedelta(days=config.max_age_days))
    have = vectors.fetch([a.id for a in recent])
    missing = [a for a in recent if a.id not in have][:limit]
    result = generate_for_articles(provider, missing)
    if result.embeddings:
        published_at = {a.id: a.published_at for a in missing}
        vectors.upsert(result.embeddings, published_at)
    for error in result.errors:
        logger.warning("[jobs] EMBEDDING_SKIPPED %s", error)
    logger.info(
        "[jobs] EMBEDDINGS generated=%s skipped=%s", result.total_generated, result.total_skipped
    )
    return {
        "processed": len(missing),
        "generated": result.total_generated,
        "skipped": result.total_skipped,
    }

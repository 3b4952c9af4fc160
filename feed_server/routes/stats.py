"""Stats endpoint."""

import logging

from fastapi import APIRouter

from ..state import get_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _safe_count(store) -> int:
    """Store size, or -1 when the backing service cannot answer."""
    try:
        return store.count()
    except Exception as e:
        logger.warning("[stats] count failed for %s: %s", type(store).__name__, e)
        return -1


@router.get("/stats")
def get_stats():
    """Get current statistics."""
    state = get_state()
    return {
        "algorithm_version": state.ranking_config.algorithm_version,
        "total_articles": _safe_count(state.content),
        "total_sources": len(state.content.get_sources()),
        "total_vectors": _safe_count(state.vectors),
        "total_interactions": _safe_count(state.interactions),
        "total_impressions": _safe_count(state.impressions),
        "cached_feeds": state.feed_service.cached_feed_count(),
    }

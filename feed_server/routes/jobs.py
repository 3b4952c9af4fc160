"""Maintenance job endpoints, called by an external scheduler."""

from fastapi import APIRouter, HTTPException

from ..services import run_cleanup_job, run_embedding_job, run_stats_job
from ..state import get_state

router = APIRouter()


@router.post("/stats")
def stats_job():
    """Recompute impressions, opens, likes, saves, ctr and quality score per recent article."""
    state = get_state()
    return run_stats_job(state.content, state.impressions, state.interactions, state.ranking_config)


@router.post("/cleanup")
def cleanup_job():
    state = get_state()
    return run_cleanup_job(
        state.content, state.vectors, state.interests, state.impressions, state.interactions
    )


@router.post("/embeddings")
def embeddings_job():
    """Embed recent articles that have no content vector yet."""
    state = get_state()
    if state.embedder is None:
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY not set; no embedding provider")
    return run_embedding_job(state.content, state.vectors, state.embedder, state.ranking_config)

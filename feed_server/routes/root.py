"""Root and health endpoints."""

from typing import Tuple

from fastapi import APIRouter

from ..services import PineconeVectorIndex, check_openai_available
from ..state import get_state

router = APIRouter()


def _pinecone_available(state) -> Tuple[bool, str]:
    """Return (available, message) for the Pinecone vector index."""
    if not isinstance(state.vectors, PineconeVectorIndex):
        return False, "PINECONE_API_KEY not set (in-memory vector index)"
    ok = state.vectors.is_available
    return ok, "connected" if ok else "not reachable"


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Feed Ranking API",
        "version": "1.0.0",
        "algorithm_version": state.ranking_config.algorithm_version,
        "data_source": state.config.data_source,
        "endpoints": {
            "feed": ["/api/feed", "/api/feed/public", "/api/feed/impressions"],
            "feedback": ["/api/interactions"],
            "preferences": ["/api/onboarding", "/api/sources/{id}/subscribe", "/api/sources/{id}/hide"],
            "catalog": ["/api/sources", "/api/sources/public", "/api/articles/{id}/content"],
            "jobs": ["/api/jobs/stats", "/api/jobs/cleanup", "/api/jobs/embeddings"],
        },
    }


@router.get("/api/health")
def health():
    state = get_state()
    openai_ok, openai_msg = check_openai_available()
    pinecone_ok, pinecone_msg = _pinecone_available(state)
    return {
        "status": "healthy",
        "openai": {"available": openai_ok, "message": openai_msg},
        "pinecone": {"available": pinecone_ok, "message": pinecone_msg},
    }

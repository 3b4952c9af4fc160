"""Source endpoints: the catalog (per-user and public), subscribe and hide."""

from fastapi import APIRouter, Depends, HTTPException

from ..models import SourceActionResponse, SourceCatalogResponse
from ..services import UnknownSourceError
from ..state import get_state
from ..utils import require_user_id

router = APIRouter()


@router.get("", response_model=SourceCatalogResponse)
def list_sources(user_id: str = Depends(require_user_id)):
    """Preinstalled sources with topics, article counts and the caller's subscription flag."""
    return get_state().catalog.list_sources(user_id)


@router.get("/public", response_model=SourceCatalogResponse)
def list_public_sources():
    """Same catalog without a caller; subscribed is null."""
    return get_state().catalog.list_sources()


@router.post("/{source_id}/subscribe", response_model=SourceActionResponse)
def subscribe(source_id: str, user_id: str = Depends(require_user_id)):
    try:
        get_state().onboarding.subscribe_source(user_id, source_id)
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SourceActionResponse(source_id=source_id, action="subscribe")


@router.post("/{source_id}/hide", response_model=SourceActionResponse)
def hide(source_id: str, user_id: str = Depends(require_user_id)):
    """Hidden sources are excluded from every candidate pool and from exploration."""
    try:
        get_state().onboarding.hide_source(user_id, source_id)
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SourceActionResponse(source_id=source_id, action="hide")

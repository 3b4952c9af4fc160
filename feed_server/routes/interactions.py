"""Interaction endpoint: record the event, update preferences, queue the vector update."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from ..models import InteractionRequest, InteractionResponse
from ..services import UnknownArticleError
from ..state import get_state
from ..utils import require_user_id

router = APIRouter()


@router.post("", response_model=InteractionResponse)
def record_interaction(
    request: InteractionRequest,
    background_tasks: BackgroundTasks,
    user_id: str = Depends(require_user_id),
):
    state = get_state()
    feedback = state.feedback
    try:
        event = feedback.record_interaction(
            user_id,
            request.article_id,
            request.type,
            value=request.value,
            event_id=request.event_id,
        )
    except UnknownArticleError as e:
        raise HTTPException(status_code=404, detail=str(e))
    feedback.apply_preferences(event)
    background_tasks.add_task(feedback.apply_interest_vector, event)
    return InteractionResponse(
        event_id=request.event_id or event.id,
        article_id=event.article_id,
        type=event.type,
    )

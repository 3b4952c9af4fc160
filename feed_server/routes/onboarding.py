"""Onboarding endpoint."""

from fastapi import APIRouter, Depends, HTTPException

from ..models import OnboardingRequest, OnboardingResponse
from ..services import InvalidOnboardingError
from ..state import get_state
from ..utils import require_user_id

router = APIRouter()


@router.post("", response_model=OnboardingResponse)
def onboard(request: OnboardingRequest, user_id: str = Depends(require_user_id)):
    """Seed topic weights, subscriptions and the interest vector from chosen topics."""
    state = get_state()
    try:
        result = state.onboarding.onboard(user_id, request.topic_slugs)
    except InvalidOnboardingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return OnboardingResponse(**result)

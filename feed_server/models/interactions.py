"""Interaction request/response models."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from ranking.models import InteractionType


class InteractionRequest(BaseModel):
    """One interaction. value is dwell seconds for OPEN; ignored otherwise."""

    article_id: str = Field(min_length=1)
    type: InteractionType
    value: Optional[float] = Field(default=None, ge=0)
    # Client-supplied id makes retries of the same interaction idempotent
    event_id: Optional[str] = Field(default=None, min_length=1, max_length=128)

    @model_validator(mode="after")
    def value_only_for_open(self):
        if self.type != InteractionType.OPEN:
            self.value = None
        return self


class InteractionResponse(BaseModel):
    status: str = "ok"
    event_id: str
    article_id: str
    type: InteractionType

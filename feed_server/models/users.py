"""Onboarding and source preference models."""

from typing import List

from pydantic import BaseModel, Field


class OnboardingRequest(BaseModel):
    topic_slugs: List[str] = Field(min_length=3)


class OnboardingResponse(BaseModel):
    topic_ids: List[str]
    subscribed_source_ids: List[str]
    vector_seeded: bool


class SourceActionResponse(BaseModel):
    status: str = "ok"
    source_id: str
    action: str

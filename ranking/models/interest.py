"""
Interest models: per-user topic weights, source affinity, interest vector,
and the interaction events that update them.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class InteractionType(str, Enum):
    OPEN = "OPEN"
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"
    SAVE = "SAVE"
    HIDE = "HIDE"


class InteractionEvent(BaseModel):
    """
    A single user interaction with an article. Append-only, never mutated.

    value: interaction payload, e.g. dwell seconds for OPEN.
    id: event id; feedback steps use it to apply each interaction at most once.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    article_id: str
    type: InteractionType
    value: Optional[float] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserTopicWeight(BaseModel):
    user_id: str
    topic_id: str
    weight: float = 0.0


class UserSourceAffinity(BaseModel):
    user_id: str
    source_id: str
    weight: float = 0.0


class UserInterestVector(BaseModel):
    """
    Exponentially decayed user profile in the article embedding space.

    Always unit length. Replaced whole on each update; version increments by one.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    vector: List[float]
    version: int = 1
    model: str = ""


class UserSignals(BaseModel):
    """
    Snapshot of one user's state read at the start of a feed request.

    Local to the request; the engine never writes it back.
    """

    user_id: str
    topic_weights: Dict[str, float] = Field(default_factory=dict)
    source_affinities: Dict[str, float] = Field(default_factory=dict)
    subscribed_source_ids: Set[str] = Field(default_factory=set)
    hidden_source_ids: Set[str] = Field(default_factory=set)
    hidden_article_ids: Set[str] = Field(default_factory=set)
    recently_shown_ids: Set[str] = Field(default_factory=set)
    interest_vector: Optional[UserInterestVector] = None

    @property
    def positive_topic_ids(self) -> Set[str]:
        return {tid for tid, w in self.topic_weights.items() if w > 0}

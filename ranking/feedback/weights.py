"""
Interaction weights: map one interaction event to the signed signal it carries.

OPEN is bucketed by dwell seconds (event value). Short opens still nudge the
interest vector but are too weak to move topic weights or source affinity.
"""

from typing import Optional

from pydantic import BaseModel

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.interest import InteractionEvent, InteractionType


def _open_bucket(dwell_seconds: Optional[float], config: RankingConfig) -> Optional[str]:
    if dwell_seconds is None:
        return None
    if dwell_seconds >= config.dwell_long_seconds:
        return "OPEN_LONG"
    if dwell_seconds >= config.dwell_medium_seconds:
        return "OPEN_MEDIUM"
    return "OPEN_SHORT"


def interaction_weight(
    interaction_type: InteractionType,
    value: Optional[float] = None,
    config: RankingConfig = DEFAULT_CONFIG,
) -> float:
    """Signed weight for an interaction; OPEN without a dwell value weighs 0."""
    if interaction_type == InteractionType.OPEN:
        bucket = _open_bucket(value, config)
        if bucket is None:
            return 0.0
        return config.interaction_weights.get(bucket, 0.0)
    return config.interaction_weights.get(interaction_type.value, 0.0)


def preference_sign(weight: float) -> int:
    if weight > 0:
        return 1
    if weight < 0:
        return -1
    return 0


class FeedbackPlan(BaseModel):
    """What one interaction should change. Zero deltas mean the step is skipped."""

    weight: float
    topic_delta: float = 0.0
    source_delta: float = 0.0
    increment_likes: bool = False
    increment_saves: bool = False

    @property
    def updates_preferences(self) -> bool:
        return self.topic_delta != 0.0 or self.source_delta != 0.0

    @property
    def updates_vector(self) -> bool:
        return self.weight != 0.0


def plan_feedback(event: InteractionEvent, config: RankingConfig = DEFAULT_CONFIG) -> FeedbackPlan:
    """
    Derive the feedback plan for one event.

    Topic and source deltas follow the sign of the weight. Opens shorter than
    dwell_medium_seconds, or with no dwell value, leave preferences untouched.
    """
    weight = interaction_weight(event.type, event.value, config)
    short_open = (
        event.type == InteractionType.OPEN
        and _open_bucket(event.value, config) in (None, "OPEN_SHORT")
    )
    sign = 0 if short_open else preference_sign(weight)
    return FeedbackPlan(
        weight=weight,
        topic_delta=sign * config.topic_weight_delta,
        source_delta=sign * config.source_affinity_delta,
        increment_likes=event.type == InteractionType.LIKE,
        increment_saves=event.type == InteractionType.SAVE,
    )


def clamp(value: float, config: RankingConfig = DEFAULT_CONFIG) -> float:
    """Clamp a topic weight or source affinity into [weight_min, weight_max]."""
    return max(config.weight_min, min(config.weight_max, value))

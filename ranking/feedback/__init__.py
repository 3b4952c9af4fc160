"""Feedback math: interaction weights and the interest-vector update."""

from .interest_vector import initial_vector, mean_vector, update_vector
from .weights import (
    clamp,
    FeedbackPlan,
    interaction_weight,
    plan_feedback,
    preference_sign,
)

__all__ = [
    "FeedbackPlan",
    "clamp",
    "initial_vector",
    "interaction_weight",
    "mean_vector",
    "plan_feedback",
    "preference_sign",
    "update_vector",
]

"""Shared utilities for similarity and vector math."""

from .similarity import cosine_distance, cosine_similarity, normalize

__all__ = [
    "cosine_distance",
    "cosine_similarity",
    "normalize",
]

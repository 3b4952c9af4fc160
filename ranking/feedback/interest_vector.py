"""
Interest vector math: exponential decay toward engaged articles.

    new = normalize((1 - alpha) * old + alpha * w * article)

Negative weights push the vector away from the article. The first vector is the
article direction scaled by |w| and normalized. Results are always unit length;
a degenerate (zero) result means no update.
"""

from typing import List, Optional, Sequence

import numpy as np

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..utils.similarity import normalize


def initial_vector(article_vector: Sequence[float], weight: float) -> Optional[List[float]]:
    """normalize(|w| * article); None for a zero weight or zero article vector."""
    if weight == 0:
        return None
    return normalize(np.asarray(article_vector, dtype=float) * abs(weight))


def update_vector(
    current: Optional[Sequence[float]],
    article_vector: Sequence[float],
    weight: float,
    config: RankingConfig = DEFAULT_CONFIG,
) -> Optional[List[float]]:
    """
    One EMA step of the interest vector.

    Returns the new unit vector, or None when there is nothing to write
    (zero weight, dimension mismatch, or a zero-length result).
    """
    if weight == 0 or article_vector is None or len(article_vector) == 0:
        return None
    if current is None or len(current) == 0:
        return initial_vector(article_vector, weight)
    old = np.asarray(current, dtype=float)
    article = np.asarray(article_vector, dtype=float)
    if old.shape != article.shape:
        return None
    alpha = config.interest_vector_alpha
    return normalize((1.0 - alpha) * old + alpha * weight * article)


def mean_vector(vectors: Sequence[Sequence[float]]) -> Optional[List[float]]:
    """Normalized mean of equal-length vectors (onboarding seed); None if empty."""
    usable = [v for v in vectors if v is not None and len(v) > 0]
    if not usable:
        return None
    dim = len(usable[0])
    usable = [v for v in usable if len(v) == dim]
    return normalize(np.mean(np.asarray(usable, dtype=float), axis=0))

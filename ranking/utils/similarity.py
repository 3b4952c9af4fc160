"""
Similarity utilities: cosine similarity and unit normalization for embeddings.
"""

from typing import List, Optional, Sequence

import numpy as np


def cosine_similarity(v1: Sequence[float], v2: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors."""
    if v1 is None or v2 is None or len(v1) == 0 or len(v2) == 0:
        return 0.0
    v1 = np.asarray(v1, dtype=float)
    v2 = np.asarray(v2, dtype=float)
    if v1.shape != v2.shape:
        return 0.0
    dot_product = np.dot(v1, v2)
    norm_product = np.linalg.norm(v1) * np.linalg.norm(v2)
    return float(dot_product / norm_product) if norm_product > 0 else 0.0


def cosine_distance(v1: Sequence[float], v2: Sequence[float]) -> float:
    """1 - cosine similarity, the metric the vector index orders by."""
    return 1.0 - cosine_similarity(v1, v2)


def normalize(vector: Sequence[float], eps: float = 1e-12) -> Optional[List[float]]:
    """L2-normalize; None when the vector has (near) zero length."""
    arr = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(arr)
    if norm <= eps or not np.isfinite(norm):
        return None
    return [float(x) for x in arr / norm]

"""
Source and content diversity: greedy MMR selection loop with a hard per-source cap.

Diversity is applied during selection rather than by re-sorting afterwards: each
slot goes to the remaining candidate with the best

    value = lambda * score - (1 - lambda) * penalty

where penalty is against everything already selected. The output order is final.
"""

from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from ..models.config import DEFAULT_CONFIG, RankingConfig
from ..models.scoring import ScoredArticle


def topic_overlap(topics_a, topics_b) -> float:
    """|shared| / max(|a|, |b|); 0 when either side has no topics."""
    if not topics_a or not topics_b:
        return 0.0
    shared = len(set(topics_a) & set(topics_b))
    return shared / max(len(topics_a), len(topics_b))


def _unit_matrix(
    items: Sequence[ScoredArticle],
    vectors: Mapping[str, Sequence[float]],
):
    """Row-normalized vector matrix and a mask of rows that have a usable vector."""
    dims = {len(v) for v in vectors.values() if v is not None and len(v) > 0}
    if len(dims) != 1:
        # No vectors, or mixed dimensions: fall back to the topic proxy everywhere.
        return None, np.zeros(len(items), dtype=bool)
    dim = dims.pop()
    matrix = np.zeros((len(items), dim))
    mask = np.zeros(len(items), dtype=bool)
    for i, item in enumerate(items):
        vec = vectors.get(item.article.id)
        if vec is None or len(vec) != dim:
            continue
        arr = np.asarray(vec, dtype=float)
        norm = np.linalg.norm(arr)
        if norm > 0:
            matrix[i] = arr / norm
            mask[i] = True
    return matrix, mask


def rerank_with_constraints(
    scored_list: List[ScoredArticle],
    vectors: Optional[Mapping[str, Sequence[float]]] = None,
    config: RankingConfig = DEFAULT_CONFIG,
) -> List[ScoredArticle]:
    """
    Select up to max_ranked_items from scored candidates with diversity constraints.

    Penalty against the selected set: same_source_penalty if the candidate's source was
    already picked; otherwise the max pairwise cosine similarity (when both items have a
    content vector) or the scaled topic overlap. Within the first source_cap_window picks,
    candidates whose source already has source_cap picks are skipped, not penalized.

    Args:
        scored_list: Candidates sorted by score (desc), then id. Not mutated.
        vectors: Optional article_id -> content vector for the similarity penalty.

    Returns:
        Ordered list. Ties on value keep baseline order (higher raw score, then lower id).
    """
    vectors = vectors or {}
    remaining = list(scored_list)
    n = len(remaining)
    matrix, has_vec = _unit_matrix(remaining, vectors)
    # Running max pairwise penalty of each candidate against the selected set.
    max_pair_penalty = np.zeros(n)
    alive = np.ones(n, dtype=bool)
    scores = np.array([s.score for s in remaining], dtype=float)

    selected: List[ScoredArticle] = []
    source_count: Dict[str, int] = {}
    lam = config.mmr_lambda
    limit = min(config.max_ranked_items, n)

    while len(selected) < limit:
        in_window = len(selected) < config.source_cap_window
        best_idx: Optional[int] = None
        best_value = float("-inf")

        for idx in range(n):
            if not alive[idx]:
                continue
            source_id = remaining[idx].article.source_id
            count = source_count.get(source_id, 0)

            # Hard cap: skip if source already at max inside the window
            if in_window and count >= config.source_cap:
                continue

            if count > 0:
                penalty = config.same_source_penalty
            else:
                penalty = max_pair_penalty[idx]
            value = lam * scores[idx] - (1.0 - lam) * penalty
            if value > best_value:
                best_value = value
                best_idx = idx

        if best_idx is None:
            # Every remaining candidate is capped inside the window
            break

        chosen = remaining[best_idx]
        alive[best_idx] = False
        selected.append(chosen)
        source_count[chosen.article.source_id] = source_count.get(chosen.article.source_id, 0) + 1
        _update_pair_penalties(
            remaining, chosen, best_idx, alive, matrix, has_vec, max_pair_penalty, config
        )

    return selected


def _update_pair_penalties(
    remaining: Sequence[ScoredArticle],
    chosen: ScoredArticle,
    chosen_idx: int,
    alive: np.ndarray,
    matrix,
    has_vec: np.ndarray,
    max_pair_penalty: np.ndarray,
    config: RankingConfig,
) -> None:
    """Fold the newly selected item into every live candidate's running max penalty."""
    sims = None
    if matrix is not None and has_vec[chosen_idx]:
        sims = matrix @ matrix[chosen_idx]
    chosen_topics = chosen.source.topics
    for idx in np.flatnonzero(alive):
        if sims is not None and has_vec[idx]:
            pair = float(sims[idx])
        else:
            pair = config.topic_overlap_scale * topic_overlap(
                remaining[idx].source.topics, chosen_topics
            )
        if pair > max_pair_penalty[idx]:
            max_pair_penalty[idx] = pair

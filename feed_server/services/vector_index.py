"""
Vector Index abstraction.

Holds article content vectors and answers nearest-neighbour queries by cosine
distance. Implementations: in-memory (brute force with numpy), Pinecone
(production, see pinecone_store.py). Swap via config.

Each vector carries its article's publish time. A query with published_after
only considers vectors published at or after it (vectors with no publish time
are left out), so the recency window applies before top_k, not after.
"""

import threading
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

import numpy as np


class VectorIndex(Protocol):
    """Protocol for article vector storage and nearest-neighbour search."""

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        published_after: Optional[datetime] = None,
    ) -> List[Tuple[str, float]]:
        """Return [(article_id, cosine_distance), ...] closest first."""
        ...

    def fetch(self, article_ids: Iterable[str]) -> Dict[str, List[float]]:
        """Return article_id -> vector for the ids that have one."""
        ...

    def upsert(
        self,
        vectors: Mapping[str, Sequence[float]],
        published_at: Optional[Mapping[str, datetime]] = None,
    ) -> None:
        ...

    def delete(self, article_ids: Iterable[str]) -> None:
        ...

    def count(self) -> int:
        ...


class InMemoryVectorIndex:
    """Brute-force cosine search over vectors held in process memory."""

    def __init__(
        self,
        vectors: Optional[Mapping[str, Sequence[float]]] = None,
        published_at: Optional[Mapping[str, datetime]] = None,
    ):
        self._lock = threading.Lock()
        self._vectors: Dict[str, List[float]] = {}
        self._published_at: Dict[str, datetime] = {}
        if vectors:
            self.upsert(vectors, published_at)

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        published_after: Optional[datetime] = None,
    ) -> List[Tuple[str, float]]:
        if vector is None or len(vector) == 0 or top_k <= 0:
            return []
        with self._lock:
            items = [
                (aid, v)
                for aid, v in self._vectors.items()
                if len(v) == len(vector) and self._is_recent(aid, published_after)
            ]
        if not items:
            return []
        ids = [aid for aid, _ in items]
        matrix = np.asarray([v for _, v in items], dtype=float)
        q = np.asarray(vector, dtype=float)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
        with np.errstate(divide="ignore", invalid="ignore"):
            sims = np.where(norms > 0, matrix @ q / norms, 0.0)
        order = np.argsort(-sims, kind="stable")[:top_k]
        return [(ids[i], float(1.0 - sims[i])) for i in order]

    def _is_recent(self, article_id: str, published_after: Optional[datetime]) -> bool:
        if published_after is None:
            return True
        published = self._published_at.get(article_id)
        return published is not None and published >= published_after

    def fetch(self, article_ids: Iterable[str]) -> Dict[str, List[float]]:
        with self._lock:
            return {aid: list(self._vectors[aid]) for aid in article_ids if aid in self._vectors}

    def upsert(
        self,
        vectors: Mapping[str, Sequence[float]],
        published_at: Optional[Mapping[str, datetime]] = None,
    ) -> None:
        published_at = published_at or {}
        with self._lock:
            for aid, v in vectors.items():
                self._vectors[aid] = [float(x) for x in v]
                if aid in published_at:
                    self._published_at[aid] = published_at[aid]

    def delete(self, article_ids: Iterable[str]) -> None:
        with self._lock:
            for aid in article_ids:
                self._vectors.pop(aid, None)
                self._published_at.pop(aid, None)

    def count(self) -> int:
        return len(self._vectors)

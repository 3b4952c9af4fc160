"""
Interest Store abstraction.

Per-user learned state: topic weights, source affinities, the interest vector,
plus the explicit preference sets (subscriptions, hidden sources and articles).
Implementations: in-memory (default, tests), Firestore (production, see
firestore_stores.py).

Mutations from feedback go through two primitives only: an atomic clamped add on
a keyed weight, and a compare-and-set replace of the interest vector. Feedback
steps claim (event_id, step) markers so a retried event is applied at most once.
"""

import threading
from datetime import datetime
from typing import Dict, Iterable, Optional, Protocol, Sequence, Set, Tuple

from ranking.models import UserInterestVector
from ranking.models.scoring import utcnow


def clamped(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class InterestStore(Protocol):
    """Protocol for per-user interest state."""

    def get_topic_weights(self, user_id: str) -> Dict[str, float]:
        ...

    def get_source_affinities(self, user_id: str) -> Dict[str, float]:
        ...

    def add_topic_weights(
        self, user_id: str, topic_ids: Iterable[str], delta: float, low: float, high: float
    ) -> Dict[str, float]:
        """Atomically add delta to each topic weight, clamped into [low, high]. Returns new values."""
        ...

    def add_source_affinity(
        self, user_id: str, source_id: str, delta: float, low: float, high: float
    ) -> float:
        """Atomically add delta to one source affinity, clamped into [low, high]."""
        ...

    def set_topic_weights(self, user_id: str, weights: Dict[str, float]) -> None:
        """Overwrite the given topic weights (onboarding)."""
        ...

    def get_interest_vector(self, user_id: str) -> Optional[UserInterestVector]:
        ...

    def replace_interest_vector(
        self,
        user_id: str,
        expected_version: Optional[int],
        vector: Sequence[float],
        model: str,
    ) -> bool:
        """
        Compare-and-set: write version expected_version + 1 only if the stored version
        still equals expected_version (None means no row yet). Returns False on conflict.
        """
        ...

    def get_subscriptions(self, user_id: str) -> Set[str]:
        ...

    def subscribe(self, user_id: str, source_ids: Iterable[str]) -> None:
        ...

    def get_hidden_sources(self, user_id: str) -> Set[str]:
        ...

    def hide_source(self, user_id: str, source_id: str) -> None:
        ...

    def get_hidden_articles(self, user_id: str) -> Set[str]:
        ...

    def hide_article(self, user_id: str, article_id: str) -> None:
        ...

    def claim_event_step(self, event_id: str, step: str) -> bool:
        """Mark (event_id, step) as applied. False if it already was."""
        ...

    def release_event_step(self, event_id: str, step: str) -> None:
        """Undo a claim after the step failed so a retry can apply it."""
        ...

    def prune_event_steps(self, cutoff: datetime) -> int:
        """Drop step markers claimed before cutoff. Returns count."""
        ...


class InMemoryInterestStore:
    """
    Interest state in process memory.

    One lock serializes every read-modify-write, which makes clamped adds and the
    vector compare-and-set atomic across request threads and background tasks.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._topic_weights: Dict[str, Dict[str, float]] = {}
        self._source_affinities: Dict[str, Dict[str, float]] = {}
        self._vectors: Dict[str, UserInterestVector] = {}
        self._subscriptions: Dict[str, Set[str]] = {}
        self._hidden_sources: Dict[str, Set[str]] = {}
        self._hidden_articles: Dict[str, Set[str]] = {}
        # (event_id, step) -> claimed at
        self._applied: Dict[Tuple[str, str], datetime] = {}

    def get_topic_weights(self, user_id: str) -> Dict[str, float]:
        with self._lock:
            return dict(self._topic_weights.get(user_id, {}))

    def get_source_affinities(self, user_id: str) -> Dict[str, float]:
        with self._lock:
            return dict(self._source_affinities.get(user_id, {}))

    def add_topic_weights(
        self, user_id: str, topic_ids: Iterable[str], delta: float, low: float, high: float
    ) -> Dict[str, float]:
        out = {}
        with self._lock:
            weights = self._topic_weights.setdefault(user_id, {})
            for tid in topic_ids:
                weights[tid] = clamped(weights.get(tid, 0.0) + delta, low, high)
                out[tid] = weights[tid]
        return out

    def add_source_affinity(
        self, user_id: str, source_id: str, delta: float, low: float, high: float
    ) -> float:
        with self._lock:
            affinities = self._source_affinities.setdefault(user_id, {})
            affinities[source_id] = clamped(affinities.get(source_id, 0.0) + delta, low, high)
            return affinities[source_id]

    def set_topic_weights(self, user_id: str, weights: Dict[str, float]) -> None:
        with self._lock:
            self._topic_weights.setdefault(user_id, {}).update(weights)

    def get_interest_vector(self, user_id: str) -> Optional[UserInterestVector]:
        with self._lock:
            return self._vectors.get(user_id)

    def replace_interest_vector(
        self,
        user_id: str,
        expected_version: Optional[int],
        vector: Sequence[float],
        model: str,
    ) -> bool:
        with self._lock:
            current = self._vectors.get(user_id)
            current_version = current.version if current is not None else None
            if current_version != expected_version:
                return False
            self._vectors[user_id] = UserInterestVector(
                user_id=user_id,
                vector=list(vector),
                version=(expected_version or 0) + 1,
                model=model,
            )
            return True

    def get_subscriptions(self, user_id: str) -> Set[str]:
        with self._lock:
            return set(self._subscriptions.get(user_id, set()))

    def subscribe(self, user_id: str, source_ids: Iterable[str]) -> None:
        with self._lock:
            self._subscriptions.setdefault(user_id, set()).update(source_ids)

    def get_hidden_sources(self, user_id: str) -> Set[str]:
        with self._lock:
            return set(self._hidden_sources.get(user_id, set()))

    def hide_source(self, user_id: str, source_id: str) -> None:
        with self._lock:
            self._hidden_sources.setdefault(user_id, set()).add(source_id)

    def get_hidden_articles(self, user_id: str) -> Set[str]:
        with self._lock:
            return set(self._hidden_articles.get(user_id, set()))

    def hide_article(self, user_id: str, article_id: str) -> None:
        with self._lock:
            self._hidden_articles.setdefault(user_id, set()).add(article_id)

    def claim_event_step(self, event_id: str, step: str) -> bool:
        with self._lock:
            key = (event_id, step)
            if key in self._applied:
                return False
            self._applied[key] = utcnow()
            return True

    def release_event_step(self, event_id: str, step: str) -> None:
        with self._lock:
            self._applied.pop((event_id, step), None)

    def prune_event_steps(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [key for key, claimed_at in self._applied.items() if claimed_at < cutoff]
            for key in stale:
                del self._applied[key]
            return len(stale)

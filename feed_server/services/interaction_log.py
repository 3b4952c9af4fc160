"""
Interaction Log abstraction.

Append-only record of user interactions (OPEN, LIKE, DISLIKE, SAVE, HIDE).
Read back only in aggregate, by the stats job. Implementations: in-memory
(default, tests), Firestore (production, see firestore_stores.py).

Events are keyed by event id; appending an id that is already logged is a no-op,
so a retried interaction is counted once.
"""

import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Protocol

from ranking.models import InteractionEvent, InteractionType


class InteractionLog(Protocol):
    """Protocol for the interaction event log."""

    def append(self, event: InteractionEvent) -> bool:
        """Persist one event. Returns False if an event with the same id is already logged."""
        ...

    def count_by_article(self, article_ids: Iterable[str]) -> Dict[str, Dict[InteractionType, int]]:
        """article_id -> {type: count} for the given articles."""
        ...

    def delete_before(self, cutoff: datetime) -> int:
        """Delete events created before cutoff. Returns count."""
        ...

    def count(self) -> int:
        ...


class InMemoryInteractionLog:
    """Interaction events held in process memory, in arrival order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: Dict[str, InteractionEvent] = {}

    def append(self, event: InteractionEvent) -> bool:
        with self._lock:
            if event.id in self._events:
                return False
            self._events[event.id] = event
            return True

    def events_for_user(self, user_id: str) -> List[InteractionEvent]:
        with self._lock:
            return [e for e in self._events.values() if e.user_id == user_id]

    def count_by_article(self, article_ids: Iterable[str]) -> Dict[str, Dict[InteractionType, int]]:
        wanted = set(article_ids)
        out: Dict[str, Dict[InteractionType, int]] = defaultdict(lambda: defaultdict(int))
        with self._lock:
            for e in self._events.values():
                if e.article_id in wanted:
                    out[e.article_id][e.type] += 1
        return {aid: dict(counts) for aid, counts in out.items()}

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [eid for eid, e in self._events.items() if e.created_at < cutoff]
            for eid in stale:
                del self._events[eid]
            return len(stale)

    def count(self) -> int:
        return len(self._events)

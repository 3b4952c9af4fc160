"""
Impression Ledger abstraction.

Idempotent record of which article was shown to which user, at what position,
in which feed request and by which algorithm version. Unique on
(user_id, feed_request_id, article_id): a duplicate write is a no-op, not an error.

Read back for the seen penalty (recent article ids per user) and by the stats job.
"""

import threading
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, Protocol, Set, Tuple

from ranking.models import ImpressionEvent


class ImpressionLedger(Protocol):
    """Protocol for impression writes and reads."""

    def record(self, impressions: Iterable[ImpressionEvent]) -> int:
        """Upsert impressions; returns how many were new."""
        ...

    def recent_article_ids(self, user_id: str, since: datetime) -> Set[str]:
        """Article ids impressed to the user at or after since."""
        ...

    def count_by_article(self, article_ids: Iterable[str]) -> Dict[str, int]:
        ...

    def delete_before(self, cutoff: datetime) -> int:
        ...

    def count(self) -> int:
        ...


class InMemoryImpressionLedger:
    """Impressions keyed by (user_id, feed_request_id, article_id) in process memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rows: Dict[Tuple[str, str, str], ImpressionEvent] = {}

    def record(self, impressions: Iterable[ImpressionEvent]) -> int:
        written = 0
        with self._lock:
            for imp in impressions:
                if imp.key in self._rows:
                    continue
                self._rows[imp.key] = imp
                written += 1
        return written

    def recent_article_ids(self, user_id: str, since: datetime) -> Set[str]:
        with self._lock:
            return {
                imp.article_id
                for imp in self._rows.values()
                if imp.user_id == user_id and imp.shown_at >= since
            }

    def count_by_article(self, article_ids: Iterable[str]) -> Dict[str, int]:
        wanted = set(article_ids)
        with self._lock:
            counts = Counter(imp.article_id for imp in self._rows.values() if imp.article_id in wanted)
        return dict(counts)

    def delete_before(self, cutoff: datetime) -> int:
        with self._lock:
            stale = [k for k, imp in self._rows.items() if imp.shown_at < cutoff]
            for k in stale:
                del self._rows[k]
        return len(stale)

    def count(self) -> int:
        return len(self._rows)

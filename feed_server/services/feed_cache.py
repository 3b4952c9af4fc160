"""
Materialized feed cache.

Page 1 of a feed stores its full ranked list here under the new feed_request_id;
later pages slice it. Entries expire after a TTL and the least recently read are
evicted past max_entries. Each user's latest feed is tracked so a bare cursor can
be resolved.
"""

import threading
import time
from collections import OrderedDict
from typing import Dict, Optional, Tuple

from ranking.models import MaterializedFeed


class FeedCache:
    """Thread-safe TTL + LRU store of MaterializedFeed by feed_request_id."""

    def __init__(self, ttl_seconds: int = 1800, max_entries: int = 10000):
        self._ttl = ttl_seconds
        self._max = max_entries
        self._lock = threading.Lock()
        self._feeds: "OrderedDict[str, Tuple[float, MaterializedFeed]]" = OrderedDict()
        self._latest_by_user: Dict[str, str] = {}

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self._ttl

    def put(self, feed: MaterializedFeed) -> None:
        now = time.monotonic()
        with self._lock:
            self._feeds[feed.feed_request_id] = (now, feed)
            self._feeds.move_to_end(feed.feed_request_id)
            self._latest_by_user[feed.user_id] = feed.feed_request_id
            while len(self._feeds) > self._max:
                oldest = next(iter(self._feeds))
                self._drop(oldest)

    def _drop(self, feed_request_id: str) -> None:
        """Remove one entry and its latest-feed pointer. Caller holds the lock."""
        _, feed = self._feeds.pop(feed_request_id)
        if self._latest_by_user.get(feed.user_id) == feed_request_id:
            del self._latest_by_user[feed.user_id]

    def get(self, feed_request_id: str) -> Optional[MaterializedFeed]:
        now = time.monotonic()
        with self._lock:
            entry = self._feeds.get(feed_request_id)
            if entry is None:
                return None
            stored_at, feed = entry
            if self._expired(stored_at, now):
                self._drop(feed_request_id)
                return None
            self._feeds.move_to_end(feed_request_id)
            return feed

    def latest_for_user(self, user_id: str) -> Optional[MaterializedFeed]:
        with self._lock:
            feed_request_id = self._latest_by_user.get(user_id)
        return self.get(feed_request_id) if feed_request_id else None

    def __len__(self) -> int:
        return len(self._feeds)

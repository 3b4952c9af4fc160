"""
Cursor pagination over a materialized feed.

The cursor is the id of the last article on the previous page. Pages are slices of
the list materialized for page 1, so concatenating pages reproduces it exactly.
"""

from typing import List, Optional

from ..models.feed import FeedPage, MaterializedFeed


def cursor_position(feed: MaterializedFeed, cursor: str) -> Optional[int]:
    """Index just after the cursor item, or None if the cursor is not in this feed."""
    for idx, item in enumerate(feed.items):
        if item.article.id == cursor:
            return idx + 1
    return None


def paginate(
    feed: MaterializedFeed,
    cursor: Optional[str] = None,
    page_size: int = 20,
) -> FeedPage:
    """
    Slice one page out of a materialized feed.

    next_cursor is None once the list is exhausted. Raises KeyError when the cursor
    does not belong to the feed; the caller decides how to recover.
    """
    start = 0
    if cursor:
        position = cursor_position(feed, cursor)
        if position is None:
            raise KeyError(cursor)
        start = position
    items: List = feed.items[start : start + page_size]
    end = start + len(items)
    next_cursor = items[-1].article.id if items and end < len(feed.items) else None
    return FeedPage(
        items=items,
        next_cursor=next_cursor,
        feed_request_id=feed.feed_request_id,
        algorithm_version=feed.algorithm_version,
        offset=start,
    )

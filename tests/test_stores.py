#!/usr/bin/env python3
"""
In-Memory Store Tests

Tests the in-memory implementations of the store protocols: content index,
vector index, interest store, interaction log and impression ledger.

Run:
----
    pytest tests/test_stores.py -v
"""

import json
import threading
from datetime import timedelta

import pytest

from factories import make_article, make_source, utc_now
from ranking.models import ArticleStats, ImpressionEvent, InteractionEvent, InteractionType
from feed_server.services import (
    InMemoryContentIndex,
    InMemoryImpressionLedger,
    InMemoryInteractionLog,
    InMemoryInterestStore,
    InMemoryVectorIndex,
)


def _impression(article_id, feed_request_id="f1", user_id="u1", shown_at=None):
    fields = dict(
        user_id=user_id,
        feed_request_id=feed_request_id,
        article_id=article_id,
        position=0,
        algorithm_version="hybrid-mmr-v2",
    )
    if shown_at is not None:
        fields["shown_at"] = shown_at
    return ImpressionEvent(**fields)


class TestContentIndex:
    """Test suite for InMemoryContentIndex."""

    def test_queries(self, content, now):
        since = now - timedelta(days=30)
        by_source = content.articles_by_sources(["ai-0"], since, 3)
        assert [a.id for a in by_source] == ["ai-0-a0", "ai-0-a1", "ai-0-a2"]

        by_topic = content.articles_by_topics(["t-security"], since, 100)
        assert {a.source_id for a in by_topic} == {"sec-0"}

        vetted = content.recent_articles(since, preinstalled_only=True)
        assert "private-0" not in {a.source_id for a in vetted}
        published = [a.published_at for a in vetted]
        assert published == sorted(published, reverse=True)

    def test_increment_and_engaged(self, content, now):
        content.increment_stat("ai-0-a0", "likes")
        content.increment_stat("ai-0-a0", "likes")
        content.increment_stat("ai-1-a0", "saves")
        assert content.get_stats(["ai-0-a0"])["ai-0-a0"].likes == 2

        engaged = content.engaged_articles(now - timedelta(days=7))
        assert [a.id for a, _ in engaged] == ["ai-0-a0"]

        with pytest.raises(ValueError):
            content.increment_stat("ai-0-a0", "ctr")

    def test_concurrent_increments(self, content):
        def worker():
            for _ in range(200):
                content.increment_stat("bio-0-a0", "opens")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert content.get_stats(["bio-0-a0"])["bio-0-a0"].opens == 800

    def test_delete_articles_before(self, now):
        index = InMemoryContentIndex(
            articles=[
                make_article("old", "s", hours_ago=24 * 70, now=now),
                make_article("new", "s", hours_ago=1, now=now),
            ],
            sources=[make_source("s")],
            stats=[ArticleStats(article_id="old", likes=1)],
        )
        assert index.delete_articles_before(now - timedelta(days=60)) == ["old"]
        assert index.get_article("old") is None
        assert index.get_stats(["old"]) == {}
        assert index.count() == 1

    def test_from_json(self, tmp_path, now):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({
            "topics": [{"id": "t-ai", "slug": "ai", "label": "AI"}],
            "sources": [{"id": "s", "title": "S", "topics": ["t-ai"], "is_preinstalled": True}],
            "articles": [{
                "id": "a", "title": "A", "url": "https://a", "source_id": "s",
                "published_at": now.isoformat(),
            }],
        }))
        index = InMemoryContentIndex.from_json(path)
        assert index.count() == 1
        assert index.get_sources()["s"].topics == {"t-ai"}
        assert index.get_topics()["t-ai"].slug == "ai"
        assert index.get_article("a").published_at == now


class TestVectorIndex:
    def test_query_returns_cosine_distance(self):
        index = InMemoryVectorIndex({"x": [1.0, 0.0], "y": [0.0, 1.0], "xy": [1.0, 1.0]})
        matches = index.query([1.0, 0.0], top_k=2)
        assert [aid for aid, _ in matches] == ["x", "xy"]
        assert matches[0][1] == pytest.approx(0.0)
        assert matches[1][1] == pytest.approx(1 - 2 ** -0.5)

    def test_fetch_upsert_delete(self):
        index = InMemoryVectorIndex()
        index.upsert({"a": [1, 2]})
        assert index.fetch(["a", "b"]) == {"a": [1.0, 2.0]}
        index.delete(["a"])
        assert index.count() == 0

    def test_query_published_after_filters_before_top_k(self):
        now = utc_now()
        index = InMemoryVectorIndex(
            {"old": [1.0, 0.0], "new": [0.9, 0.1], "undated": [1.0, 0.0]},
            published_at={"old": now - timedelta(days=45), "new": now - timedelta(hours=2)},
        )
        assert [aid for aid, _ in index.query([1.0, 0.0], top_k=1)] == ["old"]
        matches = index.query([1.0, 0.0], top_k=1, published_after=now - timedelta(days=30))
        assert [aid for aid, _ in matches] == ["new"]


class TestInterestStore:
    """Test suite for InMemoryInterestStore."""

    def test_clamped_add(self):
        store = InMemoryInterestStore()
        for _ in range(5):
            store.add_topic_weights("u1", ["t-ai", "t-bio"], 0.9, -3.0, 3.0)
        assert store.get_topic_weights("u1") == {"t-ai": 3.0, "t-bio": 3.0}
        assert store.add_source_affinity("u1", "s", -4.0, -3.0, 3.0) == -3.0

    def test_concurrent_clamped_adds(self):
        store = InMemoryInterestStore()

        def worker():
            for _ in range(50):
                store.add_topic_weights("u1", ["t-ai"], 0.01, -3.0, 3.0)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.get_topic_weights("u1")["t-ai"] == pytest.approx(2.0)

    def test_interest_vector_compare_and_set(self):
        store = InMemoryInterestStore()
        assert store.replace_interest_vector("u1", None, [1.0, 0.0], "m")
        assert not store.replace_interest_vector("u1", None, [0.0, 1.0], "m")
        assert store.replace_interest_vector("u1", 1, [0.0, 1.0], "m")
        assert not store.replace_interest_vector("u1", 1, [1.0, 0.0], "m")
        current = store.get_interest_vector("u1")
        assert (current.version, current.vector) == (2, [0.0, 1.0])

    def test_event_step_claims(self):
        store = InMemoryInterestStore()
        assert store.claim_event_step("e1", "topics")
        assert not store.claim_event_step("e1", "topics")
        assert store.claim_event_step("e1", "counters")
        store.release_event_step("e1", "topics")
        assert store.claim_event_step("e1", "topics")

    def test_prune_event_steps(self):
        store = InMemoryInterestStore()
        store.claim_event_step("e1", "topics")
        assert store.prune_event_steps(utc_now() - timedelta(days=1)) == 0
        assert store.prune_event_steps(utc_now() + timedelta(seconds=1)) == 1
        assert store.claim_event_step("e1", "topics")

    def test_subscriptions_and_hidden(self):
        store = InMemoryInterestStore()
        store.subscribe("u1", ["a", "b"])
        store.hide_source("u1", "c")
        store.hide_article("u1", "x")
        assert store.get_subscriptions("u1") == {"a", "b"}
        assert store.get_hidden_sources("u1") == {"c"}
        assert store.get_hidden_articles("u1") == {"x"}
        assert store.get_subscriptions("u2") == set()


class TestInteractionLog:
    def test_counts_and_retention(self):
        now = utc_now()
        log = InMemoryInteractionLog()
        log.append(InteractionEvent(user_id="u1", article_id="a", type=InteractionType.LIKE))
        log.append(InteractionEvent(user_id="u2", article_id="a", type=InteractionType.LIKE))
        log.append(InteractionEvent(user_id="u1", article_id="a", type=InteractionType.OPEN, value=12))
        log.append(InteractionEvent(
            user_id="u1", article_id="b", type=InteractionType.SAVE, created_at=now - timedelta(days=200)
        ))

        counts = log.count_by_article(["a", "b"])
        assert counts["a"][InteractionType.LIKE] == 2
        assert counts["a"][InteractionType.OPEN] == 1
        assert len(log.events_for_user("u1")) == 3

        assert log.delete_before(now - timedelta(days=180)) == 1
        assert log.count() == 3

    def test_append_is_idempotent_on_event_id(self):
        log = InMemoryInteractionLog()
        event = InteractionEvent(id="u1:evt-1", user_id="u1", article_id="a", type=InteractionType.LIKE)
        assert log.append(event) is True
        assert log.append(event.model_copy()) is False
        assert log.count() == 1
        assert log.count_by_article(["a"])["a"][InteractionType.LIKE] == 1


class TestImpressionLedger:
    """Test suite for InMemoryImpressionLedger."""

    def test_duplicate_writes_are_noops(self):
        ledger = InMemoryImpressionLedger()
        assert ledger.record([_impression("a"), _impression("b")]) == 2
        assert ledger.record([_impression("a"), _impression("b")]) == 0
        assert ledger.record([_impression("a", feed_request_id="f2")]) == 1
        assert ledger.count() == 3
        assert ledger.count_by_article(["a", "b"]) == {"a": 2, "b": 1}

    def test_recent_article_ids(self):
        now = utc_now()
        ledger = InMemoryImpressionLedger()
        ledger.record([
            _impression("recent", shown_at=now - timedelta(hours=2)),
            _impression("stale", shown_at=now - timedelta(hours=30)),
            _impression("other-user", user_id="u2"),
        ])
        assert ledger.recent_article_ids("u1", now - timedelta(hours=24)) == {"recent"}
        assert ledger.delete_before(now - timedelta(hours=24)) == 1

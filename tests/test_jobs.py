#!/usr/bin/env python3
"""
Maintenance Job Tests

Tests the stats aggregation, retention cleanup and embedding jobs.

Run:
----
    pytest tests/test_jobs.py -v
"""

from datetime import timedelta

import pytest

from factories import make_article, make_source
from ranking.models import DEFAULT_CONFIG, ImpressionEvent, InteractionEvent, InteractionType
from ranking.models.scoring import utcnow
from feed_server.services import (
    FeedbackProcessor,
    InMemoryContentIndex,
    InMemoryVectorIndex,
    generate_for_articles,
    run_cleanup_job,
    run_embedding_job,
    run_stats_job,
)
from feed_server.services.maintenance import compute_article_stats


class TestComputeArticleStats:
    def test_ctr_and_quality(self):
        stats = compute_article_stats("a", impressions=10, opens=4, likes=2, saves=1)
        assert stats.ctr == pytest.approx(0.4)
        assert stats.quality_score == pytest.approx((2 * 2 + 3 + 4) / 30)

    def test_quality_capped_at_one(self):
        assert compute_article_stats("a", 1, 5, 5, 5).quality_score == 1.0

    def test_no_impressions(self):
        stats = compute_article_stats("a", 0, 3, 1, 0)
        assert stats.ctr is None
        assert stats.quality_score is None


class TestStatsJob:
    def test_recomputes_from_logs(self, content, impressions, interactions):
        impressions.record([
            ImpressionEvent(
                user_id=f"u{i}", feed_request_id="f", article_id="ai-0-a0",
                position=i, algorithm_version="v",
            )
            for i in range(4)
        ])
        interactions.append(InteractionEvent(user_id="u1", article_id="ai-0-a0", type=InteractionType.OPEN, value=30))
        interactions.append(InteractionEvent(user_id="u1", article_id="ai-0-a0", type=InteractionType.LIKE))

        result = run_stats_job(content, impressions, interactions, DEFAULT_CONFIG)

        assert result["articles_updated"] == content.count()
        stats = content.get_stats(["ai-0-a0", "ai-0-a1"])
        assert (stats["ai-0-a0"].impressions, stats["ai-0-a0"].opens, stats["ai-0-a0"].likes) == (4, 1, 1)
        assert stats["ai-0-a0"].ctr == pytest.approx(0.25)
        assert stats["ai-0-a1"].quality_score is None

    def test_retried_interaction_counted_once(self, content, vectors, interests, interactions, impressions):
        processor = FeedbackProcessor(content, vectors, interests, interactions, DEFAULT_CONFIG)
        for _ in range(2):
            event = processor.record_interaction("u1", "ai-0-a0", InteractionType.LIKE, event_id="evt-1")
            processor.process(event)

        run_stats_job(content, impressions, interactions, DEFAULT_CONFIG)

        assert interactions.count() == 1
        assert content.get_stats(["ai-0-a0"])["ai-0-a0"].likes == 1


class TestCleanupJob:
    def test_retention_windows(self, now, interests, impressions, interactions):
        content = InMemoryContentIndex(
            articles=[
                make_article("old", "s", hours_ago=24 * 61, now=now),
                make_article("kept", "s", hours_ago=24 * 59, now=now),
            ],
            sources=[make_source("s")],
        )
        impressions.record([
            ImpressionEvent(
                user_id="u1", feed_request_id="f", article_id="kept", position=0,
                algorithm_version="v", shown_at=now - timedelta(days=91),
            ),
            ImpressionEvent(
                user_id="u1", feed_request_id="f", article_id="old", position=1,
                algorithm_version="v", shown_at=now - timedelta(days=89),
            ),
        ])
        interactions.append(InteractionEvent(
            user_id="u1", article_id="kept", type=InteractionType.LIKE, created_at=now - timedelta(days=181)
        ))

        vectors = InMemoryVectorIndex({"old": [1.0, 0.0], "kept": [0.0, 1.0]})

        result = run_cleanup_job(content, vectors, interests, impressions, interactions, now=now)

        assert result == {
            "impressions_deleted": 1,
            "interactions_deleted": 1,
            "event_steps_pruned": 0,
            "articles_deleted": 1,
        }
        assert content.get_article("kept") is not None
        assert vectors.fetch(["old", "kept"]).keys() == {"kept"}

    def test_prunes_step_markers_past_interaction_retention(self, content, interests, impressions, interactions):
        interests.claim_event_step("u1:evt-1", "topics")
        later = utcnow() + timedelta(days=181)

        result = run_cleanup_job(content, InMemoryVectorIndex(), interests, impressions, interactions, now=later)

        assert result["event_steps_pruned"] == 1
        assert interests.claim_event_step("u1:evt-1", "topics") is True


class TestEmbeddingJob:
    def test_embeds_missing_articles_only(self, now, content, embedder):
        vectors = InMemoryVectorIndex({"ai-0-a0": [1.0] * 8})
        result = run_embedding_job(content, vectors, embedder, DEFAULT_CONFIG, limit=5)

        assert result == {"processed": 5, "generated": 5, "skipped": 0}
        assert vectors.count() == 6
        assert not any(t.startswith("Article ai-0-a0.") for batch in embedder.calls for t in batch)

        window = now - timedelta(days=DEFAULT_CONFIG.max_age_days)
        recent = {aid for aid, _ in vectors.query([1.0] * 8, top_k=10, published_after=window)}
        assert len(recent) == 5
        assert "ai-0-a0" not in recent

    def test_failed_batch_retries_singly_and_skips(self, now, embedder):
        articles = [
            make_article("ok-1", "s", now=now),
            make_article("fail-me", "s", now=now),
            make_article("ok-2", "s", now=now),
        ]
        result = generate_for_articles(embedder, articles)
        assert set(result.embeddings) == {"ok-1", "ok-2"}
        assert result.total_skipped == 1
        assert len(embedder.calls) == 4

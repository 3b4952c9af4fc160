#!/usr/bin/env python3
"""
Feedback Tests

Tests how one interaction updates the user's interest state and article counters.

Test Scenarios:
---------------
1. LIKE on an article tagged {ai, security}: both topics +0.2, source affinity +0.3
2. Topic weights and affinities stay within [-3, 3], including under concurrent updates
3. The interest vector stays unit length and moves toward liked / away from disliked articles
4. A retried event id applies each step once
5. Short opens nudge only the interest vector; OPEN without dwell changes nothing
6. A failing step is isolated and can be re-applied by a retry
7. Two users sending the same client event id are applied independently

Run:
----
    pytest tests/test_feedback.py -v
"""

import math
import threading

import numpy as np
import pytest

from factories import article_vector
from ranking import initial_vector, interaction_weight, mean_vector, plan_feedback, update_vector
from ranking.models import DEFAULT_CONFIG, InteractionEvent, InteractionType
from feed_server.services import FeedbackProcessor, UnknownArticleError

ALPHA = DEFAULT_CONFIG.interest_vector_alpha


def _norm(vec):
    return float(np.linalg.norm(np.asarray(vec)))


class TestInteractionWeights:
    """Test suite for interaction_weight / plan_feedback."""

    @pytest.mark.parametrize(
        "interaction_type,value,expected",
        [
            (InteractionType.SAVE, None, 3.0),
            (InteractionType.LIKE, None, 2.0),
            (InteractionType.OPEN, 75, 1.5),
            (InteractionType.OPEN, 60, 1.5),
            (InteractionType.OPEN, 30, 1.0),
            (InteractionType.OPEN, 3, 0.2),
            (InteractionType.OPEN, None, 0.0),
            (InteractionType.DISLIKE, None, -2.0),
            (InteractionType.HIDE, None, -3.0),
        ],
    )
    def test_weight_table(self, interaction_type, value, expected):
        assert interaction_weight(interaction_type, value) == expected

    def test_plan_signs(self):
        like = plan_feedback(InteractionEvent(user_id="u", article_id="a", type=InteractionType.LIKE))
        hide = plan_feedback(InteractionEvent(user_id="u", article_id="a", type=InteractionType.HIDE))
        assert (like.topic_delta, like.source_delta, like.increment_likes) == (0.2, 0.3, True)
        assert (hide.topic_delta, hide.source_delta) == (-0.2, -0.3)

    def test_short_open_skips_preferences(self):
        plan = plan_feedback(
            InteractionEvent(user_id="u", article_id="a", type=InteractionType.OPEN, value=2)
        )
        assert not plan.updates_preferences
        assert plan.updates_vector


class TestInterestVectorMath:
    """Test suite for the EMA vector update."""

    def test_initial_vector_is_article_direction(self):
        vec = initial_vector([3.0, 4.0], -2.0)
        assert vec == pytest.approx([0.6, 0.8])

    def test_update_moves_toward_and_stays_unit(self):
        current = [1.0, 0.0]
        updated = update_vector(current, [0.0, 1.0], 2.0)
        raw = np.array([1 - ALPHA, ALPHA * 2.0])
        assert updated == pytest.approx(list(raw / np.linalg.norm(raw)))
        assert _norm(updated) == pytest.approx(1.0)

    def test_negative_weight_moves_away(self):
        updated = update_vector([1.0, 0.0], [0.0, 1.0], -2.0)
        assert updated[1] < 0
        assert _norm(updated) == pytest.approx(1.0)

    def test_degenerate_cases(self):
        assert update_vector([1.0, 0.0], [0.0, 1.0], 0.0) is None
        assert update_vector([1.0, 0.0], [0.0, 1.0, 0.0], 1.0) is None
        assert initial_vector([0.0, 0.0], 1.0) is None

    def test_mean_vector(self):
        assert mean_vector([[1.0, 0.0], [0.0, 1.0]]) == pytest.approx([math.sqrt(0.5)] * 2)
        assert mean_vector([]) is None


class TestFeedbackProcessor:
    """Test suite for FeedbackProcessor over the in-memory stores."""

    @pytest.fixture(autouse=True)
    def setup(self, content, vectors, interests, interactions):
        self.content = content
        self.vectors = vectors
        self.interests = interests
        self.interactions = interactions
        self.processor = FeedbackProcessor(content, vectors, interests, interactions, DEFAULT_CONFIG)

    def _interact(self, interaction_type, article_id="sec-0-a0", value=None, event_id=None, user_id="u1"):
        event = self.processor.record_interaction(
            user_id, article_id, interaction_type, value=value, event_id=event_id
        )
        self.processor.process(event)
        return event

    def test_like_updates_topics_source_and_counter(self):
        self._interact(InteractionType.LIKE)

        weights = self.interests.get_topic_weights("u1")
        assert weights == {"t-ai": pytest.approx(0.2), "t-security": pytest.approx(0.2)}
        assert self.interests.get_source_affinities("u1") == {"sec-0": pytest.approx(0.3)}
        assert self.content.get_stats(["sec-0-a0"])["sec-0-a0"].likes == 1
        assert self.interactions.count() == 1

    def test_save_increments_saves(self):
        self._interact(InteractionType.SAVE)
        stats = self.content.get_stats(["sec-0-a0"])["sec-0-a0"]
        assert (stats.saves, stats.likes) == (1, 0)

    def test_weights_clamped(self):
        for _ in range(20):
            self._interact(InteractionType.LIKE)
        for _ in range(40):
            self._interact(InteractionType.DISLIKE, article_id="bio-0-a0")
        assert self.interests.get_topic_weights("u1")["t-ai"] == pytest.approx(3.0)
        assert self.interests.get_source_affinities("u1")["sec-0"] == pytest.approx(3.0)
        assert self.interests.get_topic_weights("u1")["t-bio"] == pytest.approx(-3.0)
        assert self.interests.get_source_affinities("u1")["bio-0"] == pytest.approx(-3.0)

    def test_concurrent_likes_do_not_drop_updates(self):
        def worker():
            for _ in range(5):
                self._interact(InteractionType.LIKE, article_id="bio-0-a1")

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert self.interests.get_topic_weights("u1")["t-bio"] == pytest.approx(2.0)
        assert self.content.get_stats(["bio-0-a1"])["bio-0-a1"].likes == 10

    def test_interest_vector_created_then_versioned(self):
        self._interact(InteractionType.LIKE, article_id="crypto-0-a0")
        first = self.interests.get_interest_vector("u1")
        assert first.version == 1
        assert first.vector == pytest.approx(article_vector("crypto-0"))

        self._interact(InteractionType.LIKE, article_id="bio-0-a0")
        second = self.interests.get_interest_vector("u1")
        assert second.version == 2
        assert _norm(second.vector) == pytest.approx(1.0)
        assert second.vector[3] > 0

    def test_retried_event_applies_once(self):
        self._interact(InteractionType.LIKE, event_id="evt-1")
        self._interact(InteractionType.LIKE, event_id="evt-1")

        assert self.interests.get_topic_weights("u1")["t-ai"] == pytest.approx(0.2)
        assert self.content.get_stats(["sec-0-a0"])["sec-0-a0"].likes == 1
        assert self.interests.get_interest_vector("u1").version == 1
        assert self.interactions.count() == 1

    def test_same_event_id_from_two_users_applies_to_both(self):
        alice = self._interact(InteractionType.LIKE, event_id="evt-1", user_id="alice")
        bob = self._interact(InteractionType.LIKE, event_id="evt-1", user_id="bob")

        assert alice.id != bob.id
        assert self.interests.get_topic_weights("alice")["t-ai"] == pytest.approx(0.2)
        assert self.interests.get_topic_weights("bob")["t-ai"] == pytest.approx(0.2)
        assert self.interests.get_source_affinities("bob") == {"sec-0": pytest.approx(0.3)}
        assert self.interests.get_interest_vector("bob") is not None
        assert self.content.get_stats(["sec-0-a0"])["sec-0-a0"].likes == 2
        assert self.interactions.count() == 2

    def test_short_open_only_moves_vector(self):
        self._interact(InteractionType.OPEN, value=3)
        assert self.interests.get_topic_weights("u1") == {}
        assert self.interests.get_source_affinities("u1") == {}
        assert self.interests.get_interest_vector("u1") is not None

    def test_open_without_dwell_changes_nothing(self):
        self._interact(InteractionType.OPEN)
        assert self.interests.get_topic_weights("u1") == {}
        assert self.interests.get_interest_vector("u1") is None
        assert self.interactions.count() == 1

    def test_hide_hides_article(self):
        self._interact(InteractionType.HIDE)
        assert self.interests.get_hidden_articles("u1") == {"sec-0-a0"}
        assert self.interests.get_topic_weights("u1")["t-security"] == pytest.approx(-0.2)

    def test_unknown_article_rejected_before_write(self):
        with pytest.raises(UnknownArticleError):
            self.processor.record_interaction("u1", "missing", InteractionType.LIKE)
        assert self.interactions.count() == 0

    def test_missing_article_vector_skips_vector_step(self):
        self.vectors.delete(["sec-0-a0"])
        self._interact(InteractionType.LIKE)
        assert self.interests.get_interest_vector("u1") is None
        assert self.interests.get_topic_weights("u1")["t-ai"] == pytest.approx(0.2)

    def test_failing_step_is_isolated_and_retryable(self, monkeypatch):
        original = self.interests.add_source_affinity
        calls = {"n": 0}

        def flaky(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("store write failed")
            return original(*args, **kwargs)

        monkeypatch.setattr(self.interests, "add_source_affinity", flaky)
        self._interact(InteractionType.LIKE, event_id="evt-2")
        assert self.interests.get_source_affinities("u1") == {}
        assert self.interests.get_topic_weights("u1")["t-ai"] == pytest.approx(0.2)

        self._interact(InteractionType.LIKE, event_id="evt-2")
        assert self.interests.get_source_affinities("u1")["sec-0"] == pytest.approx(0.3)
        assert self.interests.get_topic_weights("u1")["t-ai"] == pytest.approx(0.2)

#!/usr/bin/env python3
"""
Exploration Tests

Tests the exploration pool and the every-7th-slot splice (explore_rate 0.15),
plus the full rank_feed pipeline that ends with it.

Run:
----
    pytest tests/test_exploration.py -v
"""

import random
from collections import Counter

import pytest

from factories import make_article, make_scored, make_source, seeded_catalog, utc_now
from ranking import rank_feed
from ranking.models import CandidateSource, RankingConfig, UserSignals
from ranking.stages import inject_exploration, select_exploration_pool


class TestExplorationPool:
    """Test suite for select_exploration_pool."""

    @pytest.fixture(autouse=True)
    def setup(self):
        now = utc_now()
        self.sources = {
            "vetted-1": make_source("vetted-1", {"t-bio"}),
            "vetted-2": make_source("vetted-2", {"t-climate"}),
            "selected": make_source("selected", {"t-ai"}),
            "user-added": make_source("user-added", {"t-ai"}, preinstalled=False),
        }
        self.recent = [
            make_article(f"{sid}-{n}", sid, hours_ago=n + 1, now=now)
            for sid in self.sources
            for n in range(3)
        ]

    def test_only_preinstalled_sources_outside_the_result(self):
        signals = UserSignals(user_id="u1")
        pool = select_exploration_pool(
            self.recent, self.sources, signals, {"selected"}, rng=random.Random(1)
        )
        assert {a.source_id for a in pool} == {"vetted-1", "vetted-2"}
        assert len(pool) == 6

    def test_hidden_excluded(self):
        signals = UserSignals(
            user_id="u1", hidden_source_ids={"vetted-2"}, hidden_article_ids={"vetted-1-0"}
        )
        pool = select_exploration_pool(self.recent, self.sources, signals, rng=random.Random(1))
        assert {a.id for a in pool} == {"vetted-1-1", "vetted-1-2", "selected-0", "selected-1", "selected-2"}

    def test_pool_size_cap(self):
        config = RankingConfig(explore_pool_size=2)
        pool = select_exploration_pool(
            self.recent, self.sources, UserSignals(user_id="u1"), config=config, rng=random.Random(1)
        )
        assert len(pool) == 2


class TestInjectExploration:
    """Test suite for inject_exploration."""

    @pytest.fixture(autouse=True)
    def setup(self):
        self.reranked = [make_scored(f"r{i:02d}", f"s{i}", 2.0 - i * 0.01) for i in range(14)]
        self.sources = {"vetted": make_source("vetted", {"t-bio"})}
        self.explore = [make_article(f"e{i}", "vetted", hours_ago=i + 1) for i in range(3)]

    def test_every_seventh_slot(self):
        result = inject_exploration(self.reranked, self.explore, self.sources)

        assert len(result) == 16
        explore_positions = [
            i for i, item in enumerate(result) if CandidateSource.EXPLORE in item.candidate_sources
        ]
        assert explore_positions == [7, 15]
        assert [result[i].article.id for i in explore_positions] == ["e0", "e1"]
        assert all(result[i].score == 0.5 for i in explore_positions)
        assert [s.article.id for s in result if s.article.id.startswith("r")] == [
            s.article.id for s in self.reranked
        ]

    def test_empty_pool_returns_list_unchanged(self):
        result = inject_exploration(self.reranked, [], self.sources)
        assert [s.article.id for s in result] == [s.article.id for s in self.reranked]
        assert result is not self.reranked

    def test_articles_already_ranked_are_skipped(self):
        sources = {**self.sources, "s0": make_source("s0")}
        duplicate = make_article("r00", "s0")
        result = inject_exploration(self.reranked, [duplicate, *self.explore], sources)
        assert Counter(s.article.id for s in result)["r00"] == 1
        assert result[7].article.id == "e0"

    def test_short_list_gets_no_slot(self):
        result = inject_exploration(self.reranked[:6], self.explore, self.sources)
        assert len(result) == 6


class TestRankFeed:
    """End-to-end ranking over the seeded catalog."""

    def test_pipeline_output(self):
        now = utc_now()
        _, sources, articles = seeded_catalog(now)
        sources_by_id = {s.id: s for s in sources}
        signals = UserSignals(
            user_id="u1",
            topic_weights={"t-ai": 1.0},
            subscribed_source_ids={"ai-0", "ai-1"},
        )
        pools = {
            CandidateSource.SUBSCRIBED: [a for a in articles if a.source_id in ("ai-0", "ai-1")],
            CandidateSource.TOPIC: [a for a in articles if "t-ai" in sources_by_id[a.source_id].topics],
        }
        recent = sorted(articles, key=lambda a: a.published_at, reverse=True)

        result = rank_feed(
            pools, sources_by_id, signals, recent_articles=recent, rng=random.Random(3), now=now
        )

        ranked = [s for s in result if CandidateSource.EXPLORE not in s.candidate_sources]
        explored = [s for s in result if CandidateSource.EXPLORE in s.candidate_sources]
        counts = Counter(s.article.source_id for s in result[:20])
        assert max(counts.values()) <= 2
        assert explored
        ranked_sources = {s.article.source_id for s in ranked}
        assert not ranked_sources & {s.article.source_id for s in explored}
        assert "private-0" not in {s.article.source_id for s in explored}
        assert len({s.article.id for s in result}) == len(result)

    def test_no_recent_articles_means_no_exploration(self):
        now = utc_now()
        source = make_source("s", {"t-ai"})
        pools = {CandidateSource.TOPIC: [make_article(f"a{i}", "s", i + 1, now) for i in range(10)]}
        result = rank_feed(pools, {"s": source}, UserSignals(user_id="u1"), now=now)
        assert all(CandidateSource.EXPLORE not in s.candidate_sources for s in result)

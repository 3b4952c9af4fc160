"""
Shared fixtures: a seeded in-memory catalog, the user stores, and an AppState
wired from them for service and API tests.
"""

import random

import pytest
from fastapi.testclient import TestClient

from factories import VECTOR_DIM, article_vector, seeded_catalog, unit, utc_now
from feed_server.app import create_app
from feed_server.config import ServerConfig
from feed_server.services import (
    InMemoryContentIndex,
    InMemoryImpressionLedger,
    InMemoryInteractionLog,
    InMemoryInterestStore,
    InMemoryVectorIndex,
)
from feed_server.state import AppState, set_state
from ranking.models import DEFAULT_CONFIG


class FakeEmbedder:
    """Deterministic embedding provider; texts containing "fail" raise."""

    model = "fake-embedding"

    def __init__(self):
        self.calls = []

    def generate_batch(self, texts):
        self.calls.append(list(texts))
        if any("fail" in t for t in texts):
            raise RuntimeError("provider rejected input")
        return [unit(VECTOR_DIM, len(t) % VECTOR_DIM) for t in texts]


@pytest.fixture
def now():
    return utc_now()


@pytest.fixture
def catalog(now):
    return seeded_catalog(now)


@pytest.fixture
def content(catalog):
    topics, sources, articles = catalog
    return InMemoryContentIndex(articles=articles, sources=sources, topics=topics)


@pytest.fixture
def vectors(catalog):
    _, _, articles = catalog
    return InMemoryVectorIndex(
        {a.id: article_vector(a.source_id) for a in articles},
        published_at={a.id: a.published_at for a in articles},
    )


@pytest.fixture
def interests():
    return InMemoryInterestStore()


@pytest.fixture
def interactions():
    return InMemoryInteractionLog()


@pytest.fixture
def impressions():
    return InMemoryImpressionLedger()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def app_state(content, vectors, interests, interactions, impressions, embedder):
    state = AppState(
        ServerConfig(),
        ranking_config=DEFAULT_CONFIG,
        content=content,
        vectors=vectors,
        interests=interests,
        interactions=interactions,
        impressions=impressions,
        embedder=embedder,
        rng=random.Random(7),
    )
    set_state(state)
    yield state
    set_state(None)


@pytest.fixture
def client(app_state):
    with TestClient(create_app()) as test_client:
        yield test_client

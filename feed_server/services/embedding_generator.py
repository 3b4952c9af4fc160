"""
Embedding Generator

Generates article content vectors with OpenAI's embedding API. The text formula
lives in ranking.embedding (get_embed_text) so every caller embeds the same way.

Usage:
    generator = EmbeddingGenerator(api_key="sk-...")
    result = generator.generate_for_articles(articles)
    vector_index.upsert(result.embeddings)
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from openai import OpenAI

from ranking.embedding import EMBEDDING_DIMENSIONS, EMBEDDING_MODEL, get_embed_text
from ranking.models import Article

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Text in, fixed-dimension vector out. Failures mean "no vector available"."""

    model: str

    def generate_batch(self, texts: Sequence[str]) -> List[List[float]]:
        ...


@dataclass
class EmbeddingResult:
    """Result of embedding generation."""

    embeddings: Dict[str, List[float]] = field(default_factory=dict)
    total_generated: int = 0
    total_skipped: int = 0
    errors: List[str] = field(default_factory=list)


class EmbeddingGenerator:
    """
    Generates embeddings using OpenAI's embedding API.

    Batches requests; when a batch fails, its articles are retried one by one so a
    single bad input only skips itself.
    """

    DEFAULT_MODEL = EMBEDDING_MODEL
    DEFAULT_DIMENSIONS = EMBEDDING_DIMENSIONS
    BATCH_SIZE = 50
    DELAY_BETWEEN_BATCHES = 0.5  # seconds

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model
        self.dimensions = dimensions
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        """Get or create OpenAI client."""
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable "
                "or pass api_key to EmbeddingGenerator."
            )
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def generate_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed a batch of texts; order of the output matches the input."""
        response = self.client.embeddings.create(
            model=self.model,
            input=list(texts),
            dimensions=self.dimensions,
        )
        return [item.embedding for item in response.data]


def generate_for_articles(
    provider: EmbeddingProvider,
    articles: Sequence[Article],
    batch_size: int = EmbeddingGenerator.BATCH_SIZE,
    embed_text: Callable[[Article], str] = get_embed_text,
    delay_seconds: float = 0.0,
) -> EmbeddingResult:
    """
    Embed articles with any provider. Provider failures skip the affected articles.

    Returns:
        EmbeddingResult with article_id -> vector for every article that got one.
    """
    result = EmbeddingResult()
    for i in range(0, len(articles), batch_size):
        batch = list(articles[i : i + batch_size])
        texts = [embed_text(a) for a in batch]
        try:
            vectors = provider.generate_batch(texts)
            pairs = list(zip(batch, vectors))
        except Exception as e:
            logger.warning("[embeddings] BATCH_FAILED size=%s error=%s, retrying singly", len(batch), e)
            pairs = []
            for article, text in zip(batch, texts):
                try:
                    pairs.append((article, provider.generate_batch([text])[0]))
                except Exception as single_error:
                    result.errors.append(f"{article.id}: {single_error}")
                    result.total_skipped += 1
        for article, vector in pairs:
            result.embeddings[article.id] = list(vector)
            result.total_generated += 1
        if delay_seconds and i + batch_size < len(articles):
            time.sleep(delay_seconds)
    return result


def check_openai_available() -> tuple[bool, str]:
    """Check if OpenAI is configured."""
    if not os.environ.get("OPENAI_API_KEY"):
        return False, "OPENAI_API_KEY not set"
    return True, "configured"

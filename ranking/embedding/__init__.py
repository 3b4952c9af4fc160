"""Embedding text strategy and model constants for article vectors."""

from .embedding_strategy import (
    EMBEDDING_DIMENSIONS,
    EMBEDDING_MODEL,
    MAX_EMBED_CHARS,
    STRATEGY_VERSION,
    get_embed_text,
)

__all__ = [
    "EMBEDDING_DIMENSIONS",
    "EMBEDDING_MODEL",
    "MAX_EMBED_CHARS",
    "STRATEGY_VERSION",
    "get_embed_text",
]

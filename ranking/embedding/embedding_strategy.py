"""
Embedding strategy for article content vectors.

Defines HOW text is extracted from an article for embedding. Changes here require
re-embedding the catalog (bump STRATEGY_VERSION).

The embedding text formula:
    "{title}. {summary}"  truncated to MAX_EMBED_CHARS

Interest vectors live in the same space, so the model and dimension here must
match what the vector index was built with.
"""

from ..models.article import Article

# IMPORTANT: Bump this version when the embedding logic changes!
STRATEGY_VERSION = "1.0"

# OpenAI embedding configuration
EMBEDDING_MODEL = "text-embedding-3-small"
EMBEDDING_DIMENSIONS = 1536

MAX_EMBED_CHARS = 8000


def get_embed_text(article: Article) -> str:
    """
    Text to embed for an article: "{title}. {summary}", truncated.

    Falls back to the title, then to the start of the content, when the summary is missing.
    """
    body = article.summary or article.content or ""
    embed_text = f"{article.title}. {body}".strip()
    if not embed_text or embed_text == ".":
        embed_text = article.title or "Untitled article"
    return embed_text[:MAX_EMBED_CHARS]

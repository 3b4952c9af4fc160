"""
Pinecone vector index for article content vectors.

Vector id is the article id. One namespace per embedding strategy version and
model, so re-embedding with a new strategy never mixes spaces.
Pinecone reports cosine similarity as the match score; distance = 1 - score.
"""

import logging
import os
import re
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pinecone import Pinecone, ServerlessSpec

from ranking.embedding import EMBEDDING_DIMENSIONS, EMBEDDING_MODEL, STRATEGY_VERSION

logger = logging.getLogger(__name__)

UPSERT_BATCH_SIZE = 100
FETCH_BATCH_SIZE = 1000


def _sanitize(s: str) -> str:
    """Sanitize for Pinecone namespace: no spaces, limited chars."""
    return re.sub(r"[^a-zA-Z0-9_-]", "_", (s or "").replace(".", "_")) or "default"


def _namespace(strategy_version: str, model: str) -> str:
    return f"articles_s{_sanitize(strategy_version)}__{_sanitize(model)}"


def build_recency_filter(published_after: Optional[datetime]) -> Optional[dict]:
    """Metadata filter keeping vectors published at or after published_after."""
    if published_after is None:
        return None
    return {"published_at": {"$gte": int(published_after.timestamp())}}


class PineconeVectorIndex:
    """
    Article vectors in a Pinecone serverless index.

    Uses PINECONE_API_KEY from env. Index name from PINECONE_INDEX_NAME or default.
    """

    DEFAULT_INDEX_NAME = "feed-articles"

    def __init__(
        self,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        dimension: int = EMBEDDING_DIMENSIONS,
        strategy_version: str = STRATEGY_VERSION,
        model: str = EMBEDDING_MODEL,
        cloud: str = "aws",
        region: str = "us-east-1",
    ):
        self._api_key = (api_key or os.environ.get("PINECONE_API_KEY") or "").strip()
        if not self._api_key:
            raise ValueError("PINECONE_API_KEY is required for PineconeVectorIndex")
        self._index_name = (index_name or os.environ.get("PINECONE_INDEX_NAME") or self.DEFAULT_INDEX_NAME).strip()
        self._dimension = dimension
        self._namespace = _namespace(strategy_version, model)
        self._cloud = cloud
        self._region = region
        self._client: Optional[Pinecone] = None
        self._index = None

    @property
    def client(self) -> Pinecone:
        if self._client is None:
            self._client = Pinecone(api_key=self._api_key)
        return self._client

    @property
    def index(self):
        if self._index is None:
            if not self.client.has_index(self._index_name):
                self.client.create_index(
                    name=self._index_name,
                    dimension=self._dimension,
                    metric="cosine",
                    spec=ServerlessSpec(cloud=self._cloud, region=self._region),
                )
            self._index = self.client.Index(self._index_name)
        return self._index

    @property
    def is_available(self) -> bool:
        try:
            self.client.list_indexes()
            return True
        except Exception:
            return False

    def query(
        self,
        vector: Sequence[float],
        top_k: int,
        published_after: Optional[datetime] = None,
    ) -> List[Tuple[str, float]]:
        """
        Approximate NN by vector. Returns [(article_id, cosine_distance), ...].

        published_after becomes a metadata filter on published_at (epoch seconds),
        so Pinecone applies it before taking top_k.
        """
        if not vector:
            return []
        # Pinecone requires native Python floats
        result = self.index.query(
            vector=[float(x) for x in vector],
            top_k=top_k,
            namespace=self._namespace,
            filter=build_recency_filter(published_after),
            include_values=False,
            include_metadata=False,
        )
        out = []
        for m in getattr(result, "matches", None) or []:
            mid = getattr(m, "id", None)
            mscore = getattr(m, "score", None)
            if mid and mscore is not None:
                out.append((str(mid), 1.0 - float(mscore)))
        logger.debug("[pinecone] query namespace=%r top_k=%s returned=%s", self._namespace, top_k, len(out))
        return out

    def fetch(self, article_ids: Iterable[str]) -> Dict[str, List[float]]:
        ids = list(article_ids)
        out: Dict[str, List[float]] = {}
        for i in range(0, len(ids), FETCH_BATCH_SIZE):
            result = self.index.fetch(ids=ids[i : i + FETCH_BATCH_SIZE], namespace=self._namespace)
            for aid, record in (result.vectors or {}).items():
                vals = getattr(record, "values", None) if record else None
                if vals is not None:
                    out[aid] = list(vals)
        logger.debug("[pinecone] fetch requested=%s returned=%s", len(ids), len(out))
        return out

    def upsert(
        self,
        vectors: Mapping[str, Sequence[float]],
        published_at: Optional[Mapping[str, datetime]] = None,
    ) -> None:
        published_at = published_at or {}
        rows = []
        for aid, v in vectors.items():
            row = {"id": aid, "values": [float(x) for x in v]}
            if aid in published_at:
                row["metadata"] = {"published_at": int(published_at[aid].timestamp())}
            rows.append(row)
        for i in range(0, len(rows), UPSERT_BATCH_SIZE):
            self.index.upsert(vectors=rows[i : i + UPSERT_BATCH_SIZE], namespace=self._namespace)
        if rows:
            logger.info(
                "[pinecone] upserted %s vectors to index %r namespace %r",
                len(rows), self._index_name, self._namespace,
            )

    def delete(self, article_ids: Iterable[str]) -> None:
        ids = list(article_ids)
        if ids:
            self.index.delete(ids=ids, namespace=self._namespace)

    def count(self) -> int:
        stats = self.index.describe_index_stats()
        if stats.namespaces and self._namespace in stats.namespaces:
            return stats.namespaces[self._namespace].vector_count or 0
        return 0

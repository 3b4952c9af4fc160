"""
Firestore-backed interest store, interaction log and impression ledger.

Used when DATA_SOURCE=firebase. All three share one Firebase app (same
credentials_path and project_id).

Layout:
    users/{user_id}/topic_weights/{topic_id}       {weight}
    users/{user_id}/source_affinity/{source_id}    {weight}
    users/{user_id}/subscriptions/{source_id}      {created_at}
    users/{user_id}/hidden_sources/{source_id}     {created_at}
    users/{user_id}/hidden_articles/{article_id}   {created_at}
    interest_vectors/{user_id}                     {vector, version, model, updated_at}
    feedback_markers/{event_id}__{step}            {created_at}
    interactions/{event_id}                        {user_id, article_id, type, value, created_at}
    impressions/{user_id}__{feed_request_id}__{article_id}

Clamped adds and the vector compare-and-set run inside Firestore transactions;
the client library retries them on contention.
"""

import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Union

from google.api_core.exceptions import AlreadyExists

from ranking.models import (
    ImpressionEvent,
    InteractionEvent,
    InteractionType,
    UserInterestVector,
)

from .interest_store import clamped

logger = logging.getLogger(__name__)

# Firestore "in" queries accept at most 30 values
IN_QUERY_CHUNK = 30
DELETE_BATCH_SIZE = 500


def _firestore_client(project_id: Optional[str], credentials_path: Optional[Union[Path, str]]):
    """Initialize the default Firebase app once and return a Firestore client."""
    import firebase_admin
    from firebase_admin import credentials, firestore

    if not firebase_admin._apps:
        if credentials_path:
            cred = credentials.Certificate(str(Path(credentials_path).resolve()))
            opts = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, opts)
        else:
            firebase_admin.initialize_app(options={"projectId": project_id} if project_id else None)
    return firestore.client()


def _chunks(items: List[str], size: int) -> Iterable[List[str]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


def _delete_query(db, query) -> int:
    """Batch-delete every document matched by query."""
    deleted = 0
    while True:
        docs = list(query.limit(DELETE_BATCH_SIZE).stream())
        if not docs:
            return deleted
        batch = db.batch()
        for doc in docs:
            batch.delete(doc.reference)
        batch.commit()
        deleted += len(docs)


class FirestoreInterestStore:
    """Interest state in users/{user_id}/... subcollections and interest_vectors/{user_id}."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
    ):
        from firebase_admin import firestore

        self._firestore = firestore
        self._db = _firestore_client(project_id, credentials_path)

    def _user(self, user_id: str):
        return self._db.collection("users").document(user_id)

    def _weights(self, user_id: str, collection: str) -> Dict[str, float]:
        return {
            doc.id: float((doc.to_dict() or {}).get("weight", 0.0))
            for doc in self._user(user_id).collection(collection).stream()
        }

    def _ids(self, user_id: str, collection: str) -> Set[str]:
        return {doc.id for doc in self._user(user_id).collection(collection).stream()}

    def get_topic_weights(self, user_id: str) -> Dict[str, float]:
        return self._weights(user_id, "topic_weights")

    def get_source_affinities(self, user_id: str) -> Dict[str, float]:
        return self._weights(user_id, "source_affinity")

    def _clamped_add(self, refs: list, delta: float, low: float, high: float) -> List[float]:
        firestore = self._firestore

        @firestore.transactional
        def _apply(transaction) -> List[float]:
            # All reads precede all writes inside a Firestore transaction
            snapshots = [ref.get(transaction=transaction) for ref in refs]
            values = []
            for ref, snap in zip(refs, snapshots):
                current = float((snap.to_dict() or {}).get("weight", 0.0)) if snap.exists else 0.0
                value = clamped(current + delta, low, high)
                transaction.set(ref, {"weight": value, "updated_at": firestore.SERVER_TIMESTAMP})
                values.append(value)
            return values

        return _apply(self._db.transaction())

    def add_topic_weights(
        self, user_id: str, topic_ids: Iterable[str], delta: float, low: float, high: float
    ) -> Dict[str, float]:
        ids = sorted(set(topic_ids))
        if not ids:
            return {}
        col = self._user(user_id).collection("topic_weights")
        values = self._clamped_add([col.document(tid) for tid in ids], delta, low, high)
        return dict(zip(ids, values))

    def add_source_affinity(
        self, user_id: str, source_id: str, delta: float, low: float, high: float
    ) -> float:
        ref = self._user(user_id).collection("source_affinity").document(source_id)
        return self._clamped_add([ref], delta, low, high)[0]

    def set_topic_weights(self, user_id: str, weights: Dict[str, float]) -> None:
        col = self._user(user_id).collection("topic_weights")
        batch = self._db.batch()
        for tid, weight in weights.items():
            batch.set(col.document(tid), {"weight": weight, "updated_at": self._firestore.SERVER_TIMESTAMP})
        batch.commit()

    def get_interest_vector(self, user_id: str) -> Optional[UserInterestVector]:
        snap = self._db.collection("interest_vectors").document(user_id).get()
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        return UserInterestVector(
            user_id=user_id,
            vector=list(data.get("vector") or []),
            version=int(data.get("version", 1)),
            model=data.get("model", ""),
        )

    def replace_interest_vector(
        self,
        user_id: str,
        expected_version: Optional[int],
        vector: Sequence[float],
        model: str,
    ) -> bool:
        firestore = self._firestore
        ref = self._db.collection("interest_vectors").document(user_id)

        @firestore.transactional
        def _cas(transaction) -> bool:
            snap = ref.get(transaction=transaction)
            current = int((snap.to_dict() or {}).get("version", 0)) if snap.exists else None
            if current != expected_version:
                return False
            transaction.set(ref, {
                "vector": [float(x) for x in vector],
                "version": (expected_version or 0) + 1,
                "model": model,
                "updated_at": firestore.SERVER_TIMESTAMP,
            })
            return True

        return _cas(self._db.transaction())

    def _add_ids(self, user_id: str, collection: str, ids: Iterable[str]) -> None:
        col = self._user(user_id).collection(collection)
        batch = self._db.batch()
        for item_id in ids:
            batch.set(col.document(item_id), {"created_at": self._firestore.SERVER_TIMESTAMP})
        batch.commit()

    def get_subscriptions(self, user_id: str) -> Set[str]:
        return self._ids(user_id, "subscriptions")

    def subscribe(self, user_id: str, source_ids: Iterable[str]) -> None:
        self._add_ids(user_id, "subscriptions", source_ids)

    def get_hidden_sources(self, user_id: str) -> Set[str]:
        return self._ids(user_id, "hidden_sources")

    def hide_source(self, user_id: str, source_id: str) -> None:
        self._add_ids(user_id, "hidden_sources", [source_id])

    def get_hidden_articles(self, user_id: str) -> Set[str]:
        return self._ids(user_id, "hidden_articles")

    def hide_article(self, user_id: str, article_id: str) -> None:
        self._add_ids(user_id, "hidden_articles", [article_id])

    def claim_event_step(self, event_id: str, step: str) -> bool:
        ref = self._db.collection("feedback_markers").document(f"{event_id}__{step}")
        try:
            ref.create({"created_at": self._firestore.SERVER_TIMESTAMP})
            return True
        except AlreadyExists:
            return False

    def release_event_step(self, event_id: str, step: str) -> None:
        self._db.collection("feedback_markers").document(f"{event_id}__{step}").delete()

    def prune_event_steps(self, cutoff: datetime) -> int:
        query = self._db.collection("feedback_markers").where("created_at", "<", cutoff)
        return _delete_query(self._db, query)


class FirestoreInteractionLog:
    """Interaction events in the top-level interactions collection, keyed by event id."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
    ):
        self._db = _firestore_client(project_id, credentials_path)
        self._col = self._db.collection("interactions")

    def append(self, event: InteractionEvent) -> bool:
        try:
            self._col.document(event.id).create({
                "user_id": event.user_id,
                "article_id": event.article_id,
                "type": event.type.value,
                "value": event.value,
                "created_at": event.created_at,
            })
            return True
        except AlreadyExists:
            return False

    def count_by_article(self, article_ids: Iterable[str]) -> Dict[str, Dict[InteractionType, int]]:
        out: Dict[str, Dict[InteractionType, int]] = defaultdict(lambda: defaultdict(int))
        for chunk in _chunks(sorted(set(article_ids)), IN_QUERY_CHUNK):
            for doc in self._col.where("article_id", "in", chunk).stream():
                d = doc.to_dict() or {}
                try:
                    itype = InteractionType(d.get("type"))
                except ValueError:
                    continue
                out[d.get("article_id")][itype] += 1
        return {aid: dict(counts) for aid, counts in out.items()}

    def delete_before(self, cutoff: datetime) -> int:
        return _delete_query(self._db, self._col.where("created_at", "<", cutoff))

    def count(self) -> int:
        result = self._col.count().get()
        return int(result[0][0].value)


class FirestoreImpressionLedger:
    """Impressions with a deterministic document id; create() makes writes idempotent."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
    ):
        self._db = _firestore_client(project_id, credentials_path)
        self._col = self._db.collection("impressions")

    @staticmethod
    def _doc_id(imp: ImpressionEvent) -> str:
        return "__".join(imp.key)

    def record(self, impressions: Iterable[ImpressionEvent]) -> int:
        written = 0
        for imp in impressions:
            try:
                self._col.document(self._doc_id(imp)).create({
                    "user_id": imp.user_id,
                    "feed_request_id": imp.feed_request_id,
                    "article_id": imp.article_id,
                    "position": imp.position,
                    "algorithm_version": imp.algorithm_version,
                    "candidate_sources": [s.value for s in imp.candidate_sources],
                    "shown_at": imp.shown_at,
                })
                written += 1
            except AlreadyExists:
                continue
        return written

    def recent_article_ids(self, user_id: str, since: datetime) -> Set[str]:
        query = self._col.where("user_id", "==", user_id).where("shown_at", ">=", since)
        return {(doc.to_dict() or {}).get("article_id") for doc in query.stream()} - {None}

    def count_by_article(self, article_ids: Iterable[str]) -> Dict[str, int]:
        out: Dict[str, int] = defaultdict(int)
        for chunk in _chunks(sorted(set(article_ids)), IN_QUERY_CHUNK):
            for doc in self._col.where("article_id", "in", chunk).stream():
                out[(doc.to_dict() or {}).get("article_id")] += 1
        return dict(out)

    def delete_before(self, cutoff: datetime) -> int:
        return _delete_query(self._db, self._col.where("shown_at", "<", cutoff))

    def count(self) -> int:
        result = self._col.count().get()
        return int(result[0][0].value)


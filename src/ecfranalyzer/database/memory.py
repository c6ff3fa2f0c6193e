"""
In-process MetricsStore used by tests and one-off runs.
"""

import copy
import threading
from typing import Any, Dict, List, Optional

from .base import KEY_FIELDS, MetricsStore


class InMemoryMetricsStore(MetricsStore):
    """
    Dictionary-backed store.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state. A lock makes insert() atomic across threads.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            name: {} for name in KEY_FIELDS
        }
        self._lock = threading.Lock()

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        if collection not in self._collections:
            raise ValueError(f"Unknown collection: {collection}")
        return self._collections[collection]

    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(doc) for doc in self._collection(collection).values()]

    def find_one(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._collection(collection).get(str(key))
            return copy.deepcopy(document) if document is not None else None

    def find_one_and_upsert(
        self, collection: str, key: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        with self._lock:
            documents = self._collection(collection)
            document = documents.setdefault(str(key), {})
            document.update(copy.deepcopy(fields))
            return copy.deepcopy(document)

    def insert(self, collection: str, document: Dict[str, Any]) -> bool:
        key = self.key_of(collection, document)
        with self._lock:
            documents = self._collection(collection)
            if key in documents:
                return False
            documents[key] = copy.deepcopy(document)
            return True

    def find(
        self,
        collection: str,
        sort_field: str = "date",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            documents = sorted(
                self._collection(collection).values(),
                key=lambda doc: (doc.get(sort_field) is not None, doc.get(sort_field)),
                reverse=descending,
            )
            if limit is not None:
                documents = documents[:limit]
            return [copy.deepcopy(doc) for doc in documents]

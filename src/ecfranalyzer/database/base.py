"""
Abstract document store for titles, agencies and historical snapshots.

The sync pass persists three collections:

    - titles: one document per CFR title, keyed by the title number
    - agencies: one document per agency or child agency, keyed by slug
    - historical: one immutable snapshot per calendar day, keyed by date

Stores only need to implement a handful of document operations (find_all,
find_one, find_one_and_upsert, insert, find). The domain helpers on top of
them (upsert_title, latest_snapshot, insert_snapshot, ...) are shared, so an
in-memory store and a SQLite store behave identically.

Atomicity contract:
    insert() must be atomic with respect to the collection key. If a document
    with the same key already exists it returns False and writes nothing. The
    daily snapshot relies on this so that two racing passes can never both
    write a snapshot for the same day.

Python Learning Notes:
    - ABC plus @abstractmethod defines an interface with shared helpers
    - ISO-8601 date strings sort chronologically as plain strings
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

from ..models import Agency, HistoricalSnapshot, Title

TITLES = "titles"
AGENCIES = "agencies"
HISTORICAL = "historical"

KEY_FIELDS: Dict[str, str] = {
    TITLES: "number",
    AGENCIES: "id",
    HISTORICAL: "date",
}


class MetricsStore(ABC):
    """
    Interface for persisting sync results.

    Subclasses must implement:
        - find_all(): every document in a collection
        - find_one(): one document by key
        - find_one_and_upsert(): merge fields into a document, creating it
        - insert(): create a document unless its key exists
        - find(): documents sorted by a field, optionally limited

    Implementations raise PersistenceError for storage failures.
    """

    @staticmethod
    def key_of(collection: str, document: Dict[str, Any]) -> str:
        """Return the primary key of a document in a collection."""
        try:
            field_name = KEY_FIELDS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None
        if document.get(field_name) in (None, ""):
            raise ValueError(f"{collection} document is missing '{field_name}'")
        return str(document[field_name])

    @abstractmethod
    def find_all(self, collection: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def find_one(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def find_one_and_upsert(
        self, collection: str, key: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Merge fields into the document with this key, creating it if absent.

        Returns:
            Dict[str, Any]: The stored document after the update.
        """
        pass

    @abstractmethod
    def insert(self, collection: str, document: Dict[str, Any]) -> bool:
        """
        Insert a new document.

        Returns:
            bool: True if written, False if a document with the same key
                already exists (nothing is changed in that case).
        """
        pass

    @abstractmethod
    def find(
        self,
        collection: str,
        sort_field: str = "date",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        pass

    def close(self) -> None:
        """Release any resources held by the store."""

    # Domain helpers

    def upsert_title(self, title: Title) -> None:
        self.find_one_and_upsert(TITLES, title.key, title.to_dict())

    def upsert_agency(self, agency: Agency) -> None:
        self.find_one_and_upsert(AGENCIES, agency.id, agency.to_dict())

    def get_titles(self) -> List[Title]:
        return [Title.from_dict(doc) for doc in self.find_all(TITLES)]

    def get_agencies(self) -> List[Agency]:
        return [Agency.from_dict(doc) for doc in self.find_all(AGENCIES)]

    def get_snapshot(self, day: date) -> Optional[HistoricalSnapshot]:
        """Return the snapshot for a calendar day, if one exists."""
        document = self.find_one(HISTORICAL, day.isoformat())
        return HistoricalSnapshot.from_dict(document) if document else None

    def latest_snapshot(self, before: Optional[date] = None) -> Optional[HistoricalSnapshot]:
        """
        Return the most recent snapshot, or the most recent one strictly
        before a given day.
        """
        cutoff = before.isoformat() if before else None
        for document in self.find(HISTORICAL, sort_field="date", descending=True):
            if cutoff is None or str(document["date"]) < cutoff:
                return HistoricalSnapshot.from_dict(document)
        return None

    def list_snapshots(self, limit: Optional[int] = None) -> List[HistoricalSnapshot]:
        """Snapshots newest first."""
        return [
            HistoricalSnapshot.from_dict(doc)
            for doc in self.find(HISTORICAL, sort_field="date", descending=True, limit=limit)
        ]

    def insert_snapshot(self, snapshot: HistoricalSnapshot) -> bool:
        """Write a snapshot unless one already exists for its day."""
        return self.insert(HISTORICAL, snapshot.to_dict())

    def is_empty(self) -> bool:
        """True when no historical snapshot has ever been written."""
        return not self.find(HISTORICAL, limit=1)

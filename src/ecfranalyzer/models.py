"""
Domain entities for eCFR size metrics.

These dataclasses are the in-memory and persisted representation of the four
entities the sync pass produces: titles, agencies, daily historical snapshots,
and the change records attached to each snapshot. Catalog payloads coming from
the eCFR API are validated separately (see apis/schema.py) and converted into
these types by the aggregation step.

Every entity knows how to turn itself into a JSON-compatible dictionary and
back, which is how the stores keep them. Count maps (title_counts and
agency_counts) are plain insertion-ordered dicts in both directions so that
the in-memory and persisted shapes never drift apart.

Python Learning Notes:
    - @dataclass generates __init__, __repr__ and __eq__ from the annotations
    - field(default_factory=...) gives each instance its own mutable default
    - Enum values keep the stored strings ("title", "agency") in one place
    - classmethods like from_dict are the conventional alternate constructors
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class EntityType(Enum):
    """Kind of entity a ChangeRecord refers to."""

    TITLE = "title"
    AGENCY = "agency"


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


@dataclass
class CfrReference:
    """
    A pointer from an agency to a portion of a CFR title.

    Attributes:
        title (int): The referenced title number.
        chapter (Optional[str]): Chapter within the title, usually a Roman
            numeral such as "IV". Some references point at a subtitle or part
            instead, in which case chapter is None.
    """

    title: int
    chapter: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "chapter": self.chapter}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CfrReference":
        return cls(title=int(data["title"]), chapter=data.get("chapter"))


@dataclass
class Title:
    """
    One numbered CFR title and its measured size.

    The word count is always derived by the sync pass from the title's full
    text; it is never edited by hand. Rows are keyed by number and upserted on
    every pass.

    Attributes:
        number (int): Title number, 1 or greater.
        name (str): Title heading, e.g. "General Provisions".
        word_count (int): Words in the title's full text, 0 or greater.
        last_updated (datetime): When the row was last refreshed.
    """

    number: int
    name: str
    word_count: int = 0
    last_updated: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.number < 1:
            raise ValueError(f"Title number must be >= 1, got {self.number}")
        if self.word_count < 0:
            raise ValueError(f"Title word_count must be >= 0, got {self.word_count}")

    @property
    def key(self) -> str:
        return str(self.number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "word_count": self.word_count,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Title":
        return cls(
            number=int(data["number"]),
            name=data.get("name", ""),
            word_count=int(data.get("word_count", 0)),
            last_updated=_parse_datetime(data["last_updated"]),
        )


@dataclass
class Agency:
    """
    An agency (or child agency) and its allocated share of regulatory text.

    Agencies form a forest: a top-level agency may own children, and each
    child is stored as its own row whose parent_id points back to the parent.
    The back-reference is for lookup only. A child's count is tracked
    separately and is not subtracted from the parent's.

    Attributes:
        id (str): Stable slug, unique across all agencies and children.
        name (str): Display name.
        short_name (Optional[str]): Abbreviation such as "EPA".
        word_count (int): Reference-weighted word total, 0 or greater.
        regulation_count (int): Number of CFR references counted.
        cfr_references (List[CfrReference]): References in catalog order.
        parent_id (Optional[str]): Slug of the parent agency for children.
        last_updated (datetime): When the row was last refreshed.
    """

    id: str
    name: str
    short_name: Optional[str] = None
    word_count: int = 0
    regulation_count: int = 0
    cfr_references: List[CfrReference] = field(default_factory=list)
    parent_id: Optional[str] = None
    last_updated: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Agency id must be a non-empty slug")
        if self.word_count < 0 or self.regulation_count < 0:
            raise ValueError(f"Agency {self.id} counts must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "word_count": self.word_count,
            "regulation_count": self.regulation_count,
            "cfr_references": [ref.to_dict() for ref in self.cfr_references],
            "parent_id": self.parent_id,
            "last_updated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Agency":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            short_name=data.get("short_name"),
            word_count=int(data.get("word_count", 0)),
            regulation_count=int(data.get("regulation_count", 0)),
            cfr_references=[
                CfrReference.from_dict(ref) for ref in data.get("cfr_references", [])
            ],
            parent_id=data.get("parent_id"),
            last_updated=_parse_datetime(data["last_updated"]),
        )


@dataclass
class ChangeRecord:
    """A non-zero word-count change for one entity between two snapshots."""

    entity: str
    entity_type: EntityType
    word_difference: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "entity_type": self.entity_type.value,
            "word_difference": self.word_difference,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChangeRecord":
        return cls(
            entity=str(data["entity"]),
            entity_type=EntityType(data["entity_type"]),
            word_difference=int(data["word_difference"]),
        )


@dataclass
class HistoricalSnapshot:
    """
    One calendar day's aggregate metrics and the changes since the prior day.

    Exactly one snapshot exists per date, and it is immutable once written.
    total_word_count always equals the sum of title_counts; build snapshots
    with from_counts() to get that for free.

    Attributes:
        date (date): Calendar day, the unique key.
        total_word_count (int): Sum of all title counts.
        title_counts (Dict[str, int]): Title number (as a string) to word count.
        agency_counts (Dict[str, int]): Agency slug to word count.
        changes (List[ChangeRecord]): Non-zero deltas, titles first.
    """

    date: date
    total_word_count: int
    title_counts: Dict[str, int] = field(default_factory=dict)
    agency_counts: Dict[str, int] = field(default_factory=dict)
    changes: List[ChangeRecord] = field(default_factory=list)

    @classmethod
    def from_counts(
        cls,
        day: date,
        title_counts: Dict[str, int],
        agency_counts: Dict[str, int],
        changes: Optional[List[ChangeRecord]] = None,
    ) -> "HistoricalSnapshot":
        return cls(
            date=day,
            total_word_count=sum(title_counts.values()),
            title_counts=dict(title_counts),
            agency_counts=dict(agency_counts),
            changes=list(changes or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "total_word_count": self.total_word_count,
            "title_counts": dict(self.title_counts),
            "agency_counts": dict(self.agency_counts),
            "changes": [change.to_dict() for change in self.changes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoricalSnapshot":
        return cls(
            date=_parse_date(data["date"]),
            total_word_count=int(data["total_word_count"]),
            title_counts={str(k): int(v) for k, v in data.get("title_counts", {}).items()},
            agency_counts={
                str(k): int(v) for k, v in data.get("agency_counts", {}).items()
            },
            changes=[ChangeRecord.from_dict(c) for c in data.get("changes", [])],
        )

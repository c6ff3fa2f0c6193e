"""
Pydantic schemas for eCFR catalog payloads.

The eCFR admin and versioner APIs return loosely structured JSON. These
schemas validate the parts the sync pass relies on and ignore everything else,
so that new upstream fields never break parsing and a single malformed entry
never takes down a whole catalog.

Validation policy:
    - The envelope (a JSON object with an "agencies" or "titles" list) must be
      present; otherwise the whole catalog is MalformedContent.
    - Each entry is validated independently. An invalid entry is logged and
      dropped; the rest of the catalog is kept.
    - The same holds one level down: a malformed child agency or CFR
      reference is dropped on its own, leaving its parent and siblings intact.
      If the parent itself is invalid, its valid children are kept under a
      slug-less stand-in, which aggregation treats like any agency without a
      slug (skipped, children still counted).
    - A missing agency slug is *not* a validation error here. The aggregation
      step skips and logs slug-less agencies, keeping the decision in one place.

Python Learning Notes:
    - Pydantic validates data at runtime and provides type hints
    - model_config = ConfigDict(extra="ignore") drops unknown keys silently
    - A model can reference itself ("AgencyRecord") for nested children
    - model_validate() builds a model from a dict and raises ValidationError
"""

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MalformedContent

logger = logging.getLogger(__name__)


def _valid_items(items: Any, model: Any, label: str) -> List[Any]:
    """Validate list items one by one, logging and dropping the bad ones."""
    if items is None:
        return []
    if not isinstance(items, list):
        logger.warning(f"Ignoring {label} list of type {type(items).__name__}")
        return []
    valid = []
    for index, item in enumerate(items):
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {label} #{index}: {e.error_count()} errors")
    return valid


class CfrReferencePayload(BaseModel):
    """A title/chapter pointer as published in the agency catalog."""

    model_config = ConfigDict(extra="ignore")

    title: int = Field(description="Referenced CFR title number")
    chapter: Optional[str] = Field(default=None, description="Chapter, e.g. 'IV'")
    subtitle: Optional[str] = Field(default=None)
    part: Optional[str] = Field(default=None)


class AgencyRecord(BaseModel):
    """
    One agency entry from /api/admin/v1/agencies.json.

    Top-level agencies may nest child agencies under children; children have
    the same shape (their own children list is normally empty).
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(description="Agency name")
    short_name: Optional[str] = Field(default=None, description="Abbreviation")
    display_name: Optional[str] = Field(default=None)
    sortable_name: Optional[str] = Field(default=None)
    slug: Optional[str] = Field(default=None, description="Stable identifier")
    children: List["AgencyRecord"] = Field(default_factory=list)
    cfr_references: List[CfrReferencePayload] = Field(default_factory=list)

    @field_validator("children", mode="before")
    @classmethod
    def _drop_malformed_children(cls, value: Any) -> List["AgencyRecord"]:
        return _valid_items(value, AgencyRecord, "child agency")

    @field_validator("cfr_references", mode="before")
    @classmethod
    def _drop_malformed_references(cls, value: Any) -> List[CfrReferencePayload]:
        return _valid_items(value, CfrReferencePayload, "CFR reference")


AgencyRecord.model_rebuild()


class TitleRecord(BaseModel):
    """One title entry from /api/versioner/v1/titles.json."""

    model_config = ConfigDict(extra="ignore")

    number: int = Field(ge=1, description="Title number")
    name: str = Field(description="Title heading")
    latest_amended_on: Optional[str] = Field(default=None)
    latest_issue_date: Optional[str] = Field(default=None)
    up_to_date_as_of: Optional[str] = Field(default=None)
    reserved: bool = Field(default=False, description="Reserved titles carry no text")


def _entries(payload: Any, key: str) -> List[Any]:
    if not isinstance(payload, dict) or not isinstance(payload.get(key), list):
        raise MalformedContent(f"Catalog payload has no '{key}' list")
    return payload[key]


def parse_agency_catalog(payload: Any) -> List[AgencyRecord]:
    """
    Validate the agencies envelope and each agency entry.

    Args:
        payload: Decoded JSON from the agencies endpoint.

    Returns:
        List[AgencyRecord]: Valid entries in catalog order.

    Raises:
        MalformedContent: If the envelope itself is unusable.
    """
    records = []
    for index, entry in enumerate(_entries(payload, "agencies")):
        try:
            records.append(AgencyRecord.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed agency entry #{index}: {e.error_count()} errors")
            if isinstance(entry, dict) and entry.get("children"):
                children = _valid_items(entry["children"], AgencyRecord, "child agency")
                if children:
                    records.append(
                        AgencyRecord(name=str(entry.get("name") or ""), children=children)
                    )
    return records


def parse_title_catalog(payload: Any) -> List[TitleRecord]:
    """
    Validate the titles envelope and each title entry.

    Raises:
        MalformedContent: If the envelope itself is unusable.
    """
    records = []
    for index, entry in enumerate(_entries(payload, "titles")):
        try:
            records.append(TitleRecord.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping malformed title entry #{index}: {e.error_count()} errors")
    return records

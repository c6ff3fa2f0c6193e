"""
Agency-level aggregation of title word counts.

The eCFR agency catalog lists, for every agency, the CFR titles (and chapters)
it is responsible for. An agency rarely owns a whole title, so its size is
estimated as a weighted share of each referenced title's word count:

    agency_words = round(sum(weight * title_words for each reference))

Top-level agencies use the parent weight (0.10 by default) and child agencies
the child weight (0.05 by default). A child is stored as its own entry with a
parent_id back-reference; its words are never subtracted from the parent.

Robustness rules:
    - A reference to a title that is missing from the catalog contributes 0
      but still counts toward regulation_count.
    - Agencies without a slug cannot be keyed and are skipped (logged). Their
      children are still aggregated when they have slugs of their own.
    - The first agency seen with a given slug wins; later duplicates are
      skipped (logged).
    - An error while computing one agency is logged and that agency is
      recorded with word_count 0. Other agencies are unaffected.

Python Learning Notes:
    - math.fsum() adds floats without accumulating rounding error, so the same
      references always produce the same rounded total
    - Generators (yield) flatten the parent/children tree lazily
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..apis.schema import AgencyRecord
from ..models import Agency, CfrReference, Title

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """
    Output of one aggregation run.

    Attributes:
        title_counts (Dict[str, int]): Title number (as a string) to word
            count, ordered by title number.
        agency_counts (Dict[str, int]): Agency slug to weighted word count, in
            catalog order with each parent followed by its children.
        agencies (List[Agency]): Flattened Agency rows ready to upsert.
        skipped (int): Catalog entries skipped for a missing or duplicate slug.
    """

    title_counts: Dict[str, int] = field(default_factory=dict)
    agency_counts: Dict[str, int] = field(default_factory=dict)
    agencies: List[Agency] = field(default_factory=list)
    skipped: int = 0

    @property
    def total_word_count(self) -> int:
        return sum(self.title_counts.values())


class AggregationEngine:
    """
    Computes per-title and per-agency word counts for one sync pass.

    Attributes:
        parent_weight (float): Share of a title credited to a top-level agency.
        child_weight (float): Share of a title credited to a child agency.

    Example:
        engine = AggregationEngine()
        result = engine.aggregate(titles, agency_records)
        result.agency_counts["environmental-protection-agency"]
    """

    def __init__(self, parent_weight: float = 0.10, child_weight: float = 0.05):
        if parent_weight < 0 or child_weight < 0:
            raise ValueError("Reference weights must be >= 0")
        self.parent_weight = parent_weight
        self.child_weight = child_weight

    def aggregate(
        self, titles: Sequence[Title], agencies: Iterable[AgencyRecord]
    ) -> AggregationResult:
        """
        Aggregate title counts up to agencies.

        Args:
            titles (Sequence[Title]): Titles with their word counts.
            agencies (Iterable[AgencyRecord]): Top-level catalog entries, each
                with nested children.

        Returns:
            AggregationResult: Counts and flattened Agency rows.
        """
        title_counts = {
            title.key: title.word_count
            for title in sorted(titles, key=lambda t: t.number)
        }
        result = AggregationResult(title_counts=title_counts)

        for record, weight, parent_id in self._flatten(agencies):
            slug = record.slug
            if not slug:
                logger.warning(f"Skipping agency without slug: {record.name!r}")
                result.skipped += 1
                continue
            if slug in result.agency_counts:
                logger.warning(f"Skipping duplicate agency slug: {slug}")
                result.skipped += 1
                continue

            references = [
                CfrReference(title=ref.title, chapter=ref.chapter)
                for ref in record.cfr_references
            ]
            try:
                words = self.weighted_word_count(references, title_counts, weight)
            except Exception as e:
                logger.error(f"Error aggregating agency {slug}, recording 0: {e}")
                words = 0

            result.agency_counts[slug] = words
            result.agencies.append(
                Agency(
                    id=slug,
                    name=record.name,
                    short_name=record.short_name,
                    word_count=words,
                    regulation_count=len(references),
                    cfr_references=references,
                    parent_id=parent_id,
                )
            )

        logger.info(
            f"Aggregated {len(result.agencies)} agencies over {len(title_counts)} titles "
            f"({result.skipped} skipped)"
        )
        return result

    def weighted_word_count(
        self,
        references: Sequence[CfrReference],
        title_counts: Dict[str, int],
        weight: float,
    ) -> int:
        """
        Sum weight * title word count over references, rounded once.

        References to titles not in title_counts contribute 0.
        """
        return round(
            math.fsum(
                weight * title_counts.get(str(ref.title), 0) for ref in references
            )
        )

    def _flatten(
        self, agencies: Iterable[AgencyRecord]
    ) -> Iterator[Tuple[AgencyRecord, float, Optional[str]]]:
        # Yields each parent followed by its children
        for parent in agencies:
            yield parent, self.parent_weight, None
            for child in parent.children:
                yield child, self.child_weight, parent.slug or None

"""
Day-over-day change detection between aggregation results and snapshots.
"""

import logging
from typing import Dict, List, Optional, Protocol, Sequence

from ..models import ChangeRecord, EntityType

logger = logging.getLogger(__name__)


class CountsLike(Protocol):
    """Anything carrying title and agency count maps."""

    title_counts: Dict[str, int]
    agency_counts: Dict[str, int]


class HistoricalDiffEngine:
    """
    Compares the current counts against the previous snapshot.

    Only entities present in the current counts are compared, so an entity
    that disappeared since the previous day produces no change record. An
    entity that is new today is compared against 0.
    """

    def diff(
        self, current: CountsLike, previous: Optional[CountsLike]
    ) -> List[ChangeRecord]:
        """
        Compute non-zero word-count changes, titles first, then agencies.

        Args:
            current: Today's counts (an AggregationResult or snapshot).
            previous: The latest earlier snapshot, or None on the first run.

        Returns:
            List[ChangeRecord]: Empty when previous is None.
        """
        if previous is None:
            return []

        changes = self._diff_counts(
            current.title_counts, previous.title_counts, EntityType.TITLE
        )
        changes.extend(
            self._diff_counts(
                current.agency_counts, previous.agency_counts, EntityType.AGENCY
            )
        )
        logger.debug(f"Computed {len(changes)} changes")
        return changes

    @staticmethod
    def _diff_counts(
        current: Dict[str, int], previous: Dict[str, int], entity_type: EntityType
    ) -> List[ChangeRecord]:
        changes = []
        for key, count in current.items():
            difference = count - previous.get(key, 0)
            if difference:
                changes.append(
                    ChangeRecord(
                        entity=key, entity_type=entity_type, word_difference=difference
                    )
                )
        return changes

    @staticmethod
    def rank_changes(
        changes: Sequence[ChangeRecord], limit: Optional[int] = None
    ) -> List[ChangeRecord]:
        """Order changes by absolute size, largest first (stable for ties)."""
        ranked = sorted(changes, key=lambda c: abs(c.word_difference), reverse=True)
        return ranked if limit is None else ranked[:limit]

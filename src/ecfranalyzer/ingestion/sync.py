"""
Synchronization pass: catalogs in, title/agency rows and a daily snapshot out.

One pass walks a small state machine:

    IDLE -> FETCHING_CATALOGS -> PROCESSING_ENTITIES -> DIFFING -> PERSISTING -> IDLE
                     |
                     +-> FALLBACK -> PERSISTING -> IDLE   (catalogs unusable)

FETCHING_CATALOGS:
    Title and agency catalogs come from the RegulatoryAPIClient. A fetch
    error, a malformed payload or an empty catalog means the upstream is
    unusable for this pass and the orchestrator switches to FALLBACK.

PROCESSING_ENTITIES:
    Every title is streamed and counted by a fixed pool of workers. Failures
    stay inside their own task: a title that cannot be counted is logged and
    recorded as a degraded 0, and its siblings carry on. Title counts are then
    rolled up into agency counts.

DIFFING:
    Runs only when the store has no snapshot for today, so any number of
    passes on the same day produce exactly one snapshot. Changes are computed
    against the latest snapshot strictly before today.

PERSISTING:
    Every title and agency row is upserted independently (a failing row is
    logged and counted). The snapshot is written with an atomic insert that
    refuses duplicates, so a pass that lost a race for the day writes nothing.

FALLBACK:
    Seeds an empty store with a synthetic but internally consistent dataset.
    All of its log lines are tagged [synthetic].

Python Learning Notes:
    - asyncio.Lock serializes whole passes even when several callers overlap
    - asyncio.Queue plus N worker tasks bounds the number of open downloads
    - asyncio.TaskGroup cancels sibling workers if one fails unexpectedly
    - Store calls are synchronous and run on the event loop, like the
      SQLite progress tracking they replace; each is one short local
      transaction, and they happen only after all downloads finish
    - Catching Exception (not BaseException) at the task boundary lets
      cancellation still propagate
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..apis.base import RegulatoryAPIClient
from ..apis.ecfr import ECFRClient
from ..apis.schema import AgencyRecord, TitleRecord
from ..database.base import MetricsStore
from ..database.sqlite import SQLiteMetricsStore
from ..errors import (
    MalformedContent,
    PersistenceError,
    TransientFetchError,
    UpstreamUnavailable,
)
from ..models import Agency, ChangeRecord, HistoricalSnapshot, Title
from ..processors.aggregation import AggregationEngine, AggregationResult
from ..processors.history import HistoricalDiffEngine
from ..processors.synthetic import SyntheticDataGenerator
from ..processors.text_metrics import word_count_streaming
from ..utils.config import SyncConfig, get_config
from ..utils.monitoring import PerformanceMonitor

logger = logging.getLogger(__name__)

SYNTHETIC_TAG = "[synthetic]"


class SyncState(Enum):
    """States of one synchronization pass."""

    IDLE = "idle"
    FETCHING_CATALOGS = "fetching_catalogs"
    PROCESSING_ENTITIES = "processing_entities"
    DIFFING = "diffing"
    PERSISTING = "persisting"
    FALLBACK = "fallback"


@dataclass
class TitleResult:
    """Outcome of counting one title."""

    number: int
    word_count: int
    degraded: bool = False
    error: Optional[str] = None
    processing_time_ms: Optional[float] = None


@dataclass
class SyncReport:
    """
    Summary of one pass, returned to the caller and logged.

    Attributes:
        started_at (datetime): When the pass acquired the lock.
        finished_at (Optional[datetime]): When it returned to IDLE.
        states (List[SyncState]): States visited, in order.
        used_fallback (bool): True when synthetic data was used.
        titles_processed (int): Titles counted from real content.
        titles_degraded (int): Titles recorded as a degraded 0.
        agencies_aggregated (int): Agency rows produced.
        agencies_skipped (int): Catalog entries skipped (no or duplicate slug).
        snapshot_date (Optional[date]): The day this pass is for.
        snapshot_created (bool): True if this pass wrote today's snapshot.
        changes (List[ChangeRecord]): Changes in the snapshot it wrote.
        persistence_failures (int): Rows or snapshots that failed to write.
    """

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    states: List[SyncState] = field(default_factory=list)
    used_fallback: bool = False
    titles_processed: int = 0
    titles_degraded: int = 0
    agencies_aggregated: int = 0
    agencies_skipped: int = 0
    snapshot_date: Optional[date] = None
    snapshot_created: bool = False
    changes: List[ChangeRecord] = field(default_factory=list)
    persistence_failures: int = 0

    @property
    def state(self) -> SyncState:
        return self.states[-1] if self.states else SyncState.IDLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "states": [s.value for s in self.states],
            "used_fallback": self.used_fallback,
            "titles_processed": self.titles_processed,
            "titles_degraded": self.titles_degraded,
            "agencies_aggregated": self.agencies_aggregated,
            "agencies_skipped": self.agencies_skipped,
            "snapshot_date": self.snapshot_date.isoformat() if self.snapshot_date else None,
            "snapshot_created": self.snapshot_created,
            "changes": [c.to_dict() for c in self.changes],
            "persistence_failures": self.persistence_failures,
        }


class SyncOrchestrator:
    """
    Drives synchronization passes against one client and one store.

    Attributes:
        client (RegulatoryAPIClient): Source of catalogs and title content.
        store (MetricsStore): Destination for rows and snapshots.
        config (SyncConfig): Concurrency, weights and fallback settings.
        state (SyncState): Current state; IDLE between passes.

    Example:
        orchestrator = SyncOrchestrator(ECFRClient(), SQLiteMetricsStore())
        report = await orchestrator.run_sync_pass()
        print(report.snapshot_created, len(report.changes))
    """

    def __init__(
        self,
        client: RegulatoryAPIClient,
        store: MetricsStore,
        config: Optional[SyncConfig] = None,
        aggregation_engine: Optional[AggregationEngine] = None,
        diff_engine: Optional[HistoricalDiffEngine] = None,
        synthetic_generator: Optional[SyntheticDataGenerator] = None,
        today: Callable[[], date] = date.today,
    ):
        self.client = client
        self.store = store
        self.config = config or get_config()
        self.aggregation_engine = aggregation_engine or AggregationEngine(
            parent_weight=self.config.parent_weight,
            child_weight=self.config.child_weight,
        )
        self.diff_engine = diff_engine or HistoricalDiffEngine()
        self.synthetic_generator = synthetic_generator
        self.today = today
        self.state = SyncState.IDLE
        self.performance_monitor = PerformanceMonitor()
        self._lock = asyncio.Lock()

    def _transition(self, state: SyncState, report: SyncReport) -> None:
        logger.debug(f"Sync state {self.state.value} -> {state.value}")
        self.state = state
        report.states.append(state)

    async def run_sync_pass(self) -> SyncReport:
        """
        Run one full pass. Safe to call repeatedly and concurrently.

        Returns:
            SyncReport: What the pass did.
        """
        async with self._lock:
            report = SyncReport()
            today = self.today()
            report.snapshot_date = today
            logger.info(f"Starting sync pass for {today.isoformat()}")

            try:
                try:
                    titles, agencies = await self._fetch_catalogs(report)
                except UpstreamUnavailable as e:
                    logger.error(f"Upstream unavailable, using synthetic data: {e}")
                    self._run_fallback(report, today)
                else:
                    await self._run_live(report, today, titles, agencies)
            finally:
                self._transition(SyncState.IDLE, report)
                report.finished_at = datetime.now()

            logger.info(
                f"Sync pass finished: fallback={report.used_fallback}, "
                f"titles={report.titles_processed} ({report.titles_degraded} degraded), "
                f"agencies={report.agencies_aggregated}, "
                f"snapshot_created={report.snapshot_created}, "
                f"changes={len(report.changes)}, "
                f"persistence_failures={report.persistence_failures}"
            )
            return report

    async def _fetch_catalogs(
        self, report: SyncReport
    ) -> Tuple[List[TitleRecord], List[AgencyRecord]]:
        self._transition(SyncState.FETCHING_CATALOGS, report)
        try:
            titles = await self.client.get_titles()
            agencies = await self.client.get_agencies()
        except (TransientFetchError, MalformedContent) as e:
            raise UpstreamUnavailable(f"Catalog fetch failed: {e}") from e

        if not titles:
            raise UpstreamUnavailable("Title catalog is empty")
        if not agencies:
            raise UpstreamUnavailable("Agency catalog is empty")

        logger.info(f"Fetched {len(titles)} titles and {len(agencies)} agencies")
        return titles, agencies

    async def _run_live(
        self,
        report: SyncReport,
        today: date,
        title_records: List[TitleRecord],
        agency_records: List[AgencyRecord],
    ) -> None:
        self._transition(SyncState.PROCESSING_ENTITIES, report)
        title_records = self._unique_titles(title_records)
        latest_date = await self.client.get_latest_available_date()

        self.performance_monitor.start()
        results = await self.count_titles(title_records, latest_date)
        logger.info(self.performance_monitor.summary(total_titles=len(title_records)))

        report.titles_processed = sum(1 for r in results if not r.degraded)
        report.titles_degraded = sum(1 for r in results if r.degraded)

        titles = [
            Title(number=record.number, name=record.name, word_count=result.word_count)
            for record, result in zip(title_records, results)
        ]
        aggregation = self.aggregation_engine.aggregate(titles, agency_records)
        report.agencies_aggregated = len(aggregation.agencies)
        report.agencies_skipped = aggregation.skipped

        self._transition(SyncState.DIFFING, report)
        snapshot = self._build_snapshot(today, aggregation, report)

        self._transition(SyncState.PERSISTING, report)
        self._persist_rows(titles, aggregation.agencies, report)
        if snapshot is not None:
            self._persist_snapshot(snapshot, report)

    @staticmethod
    def _unique_titles(records: List[TitleRecord]) -> List[TitleRecord]:
        seen = set()
        unique = []
        for record in records:
            if record.number in seen:
                logger.warning(f"Skipping duplicate title {record.number} in catalog")
                continue
            seen.add(record.number)
            unique.append(record)
        return unique

    async def count_titles(
        self, records: Sequence[TitleRecord], latest_date: str
    ) -> List[TitleResult]:
        """
        Count every title with at most config.max_concurrency open streams.

        Returns:
            List[TitleResult]: One result per record, in record order.
        """
        queue: asyncio.Queue = asyncio.Queue()
        for index, record in enumerate(records):
            queue.put_nowait((index, record))

        results: List[Optional[TitleResult]] = [None] * len(records)

        async def worker() -> None:
            while True:
                try:
                    index, record = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    result = await self._count_title(record, latest_date)
                    results[index] = result
                    self.performance_monitor.record_title(
                        processing_time_ms=result.processing_time_ms,
                        degraded=result.degraded,
                    )
                finally:
                    queue.task_done()

        # An unexpected error in one worker cancels the rest and surfaces
        # as an ExceptionGroup
        worker_count = min(self.config.max_concurrency, len(records))
        async with asyncio.TaskGroup() as group:
            for _ in range(worker_count):
                group.create_task(worker())
        return [result for result in results if result is not None]

    async def _count_title(self, record: TitleRecord, latest_date: str) -> TitleResult:
        """Count one title; never raises for an ordinary failure."""
        if record.reserved:
            logger.debug(f"Title {record.number} is reserved, counting 0")
            return TitleResult(number=record.number, word_count=0)

        start = time.monotonic()
        content_date = record.latest_issue_date or latest_date
        try:
            stream = self.client.stream_title_content(record.number, content_date)
            words = await word_count_streaming(stream)
        except Exception as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.warning(
                f"Title {record.number}: recording degraded word count 0 "
                f"({type(e).__name__}: {e})"
            )
            return TitleResult(
                number=record.number,
                word_count=0,
                degraded=True,
                error=str(e),
                processing_time_ms=elapsed_ms,
            )

        elapsed_ms = (time.monotonic() - start) * 1000
        if getattr(stream, "degraded", False):
            logger.warning(
                f"Title {record.number}: content unavailable, recording degraded word count 0"
            )
            return TitleResult(
                number=record.number,
                word_count=0,
                degraded=True,
                error="placeholder content",
                processing_time_ms=elapsed_ms,
            )

        logger.info(f"Title {record.number}: {words} words ({elapsed_ms:.0f}ms)")
        return TitleResult(
            number=record.number, word_count=words, processing_time_ms=elapsed_ms
        )

    def _build_snapshot(
        self, today: date, aggregation: AggregationResult, report: SyncReport
    ) -> Optional[HistoricalSnapshot]:
        try:
            if self.store.get_snapshot(today) is not None:
                logger.info(f"Snapshot for {today.isoformat()} already exists, skipping diff")
                return None
            previous = self.store.latest_snapshot(before=today)
        except PersistenceError as e:
            logger.error(f"Could not read snapshots, skipping today's snapshot: {e}")
            report.persistence_failures += 1
            return None

        changes = self.diff_engine.diff(aggregation, previous)
        logger.info(f"Found {len(changes)} changes since previous snapshot")
        return HistoricalSnapshot.from_counts(
            today, aggregation.title_counts, aggregation.agency_counts, changes
        )

    def _persist_rows(
        self,
        titles: Sequence[Title],
        agencies: Sequence[Agency],
        report: SyncReport,
        tag: str = "",
    ) -> None:
        prefix = f"{tag} " if tag else ""
        for title in titles:
            try:
                self.store.upsert_title(title)
            except PersistenceError as e:
                logger.error(f"{prefix}Failed to store title {title.number}: {e}")
                report.persistence_failures += 1
        for agency in agencies:
            try:
                self.store.upsert_agency(agency)
            except PersistenceError as e:
                logger.error(f"{prefix}Failed to store agency {agency.id}: {e}")
                report.persistence_failures += 1

    def _persist_snapshot(
        self, snapshot: HistoricalSnapshot, report: SyncReport, tag: str = ""
    ) -> bool:
        prefix = f"{tag} " if tag else ""
        day = snapshot.date.isoformat()
        try:
            created = self.store.insert_snapshot(snapshot)
        except PersistenceError as e:
            logger.error(f"{prefix}Failed to store snapshot for {day}: {e}")
            report.persistence_failures += 1
            return False

        if not created:
            logger.info(f"{prefix}Snapshot for {day} was written by another pass")
            return False

        logger.info(
            f"{prefix}Stored snapshot for {day}: {snapshot.total_word_count} words, "
            f"{len(snapshot.changes)} changes"
        )
        if snapshot.date == report.snapshot_date:
            report.snapshot_created = True
            report.changes = list(snapshot.changes)
        return True

    def _run_fallback(self, report: SyncReport, today: date) -> None:
        self._transition(SyncState.FALLBACK, report)
        report.used_fallback = True

        try:
            has_history = not self.store.is_empty()
        except PersistenceError as e:
            logger.error(f"{SYNTHETIC_TAG} Could not inspect store, writing nothing: {e}")
            report.persistence_failures += 1
            return
        if has_history:
            logger.warning(
                f"{SYNTHETIC_TAG} Store already holds snapshots, leaving it unchanged"
            )
            return

        generator = self.synthetic_generator or SyntheticDataGenerator(
            days=self.config.synthetic_days
        )
        catalog = generator.agency_catalog()
        series = generator.daily_series(today, generator.titles())
        logger.warning(
            f"{SYNTHETIC_TAG} Generating {len(series)} days of sample data ending {today}"
        )

        self._transition(SyncState.PERSISTING, report)
        titles: List[Title] = []
        aggregation: Optional[AggregationResult] = None
        for day, titles in series:
            aggregation = self.aggregation_engine.aggregate(titles, catalog)
            try:
                if self.store.get_snapshot(day) is not None:
                    continue
                previous = self.store.latest_snapshot(before=day)
            except PersistenceError as e:
                logger.error(f"{SYNTHETIC_TAG} Could not read snapshots for {day}: {e}")
                report.persistence_failures += 1
                continue
            snapshot = HistoricalSnapshot.from_counts(
                day,
                aggregation.title_counts,
                aggregation.agency_counts,
                self.diff_engine.diff(aggregation, previous),
            )
            self._persist_snapshot(snapshot, report, tag=SYNTHETIC_TAG)

        if aggregation is not None:
            self._persist_rows(titles, aggregation.agencies, report, tag=SYNTHETIC_TAG)
            report.titles_processed = len(titles)
            report.agencies_aggregated = len(aggregation.agencies)
            report.agencies_skipped = aggregation.skipped


async def run_sync_pass(
    config: Optional[SyncConfig] = None, store: Optional[MetricsStore] = None
) -> SyncReport:
    """
    Build a client and store from configuration and run one pass.

    Args:
        config (Optional[SyncConfig]): Settings; defaults to get_config().
        store (Optional[MetricsStore]): Store to use; defaults to a
            SQLiteMetricsStore at config.db_path (closed afterwards).

    Returns:
        SyncReport: What the pass did.
    """

    config = config or get_config()
    owns_store = store is None
    store = store or SQLiteMetricsStore(config.db_path)

    try:
        async with ECFRClient(config=config) as client:
            orchestrator = SyncOrchestrator(client, store, config=config)
            return await orchestrator.run_sync_pass()
    finally:
        if owns_store:
            store.close()

"""
Database module for persisting eCFR metrics.

Key Components:
    - MetricsStore: Abstract store with titles/agencies/historical collections
    - InMemoryMetricsStore: Dictionary-backed store for tests and dry runs
    - SQLiteMetricsStore: Persistent store used by the scheduled sync

Example Usage:
    from ecfranalyzer.database import SQLiteMetricsStore

    store = SQLiteMetricsStore("ecfr_metrics.db")
    snapshot = store.latest_snapshot()
    if snapshot:
        print(snapshot.date, snapshot.total_word_count)
"""

from .base import AGENCIES, HISTORICAL, TITLES, MetricsStore
from .memory import InMemoryMetricsStore
from .sqlite import SQLiteMetricsStore

__all__ = [
    "MetricsStore",
    "InMemoryMetricsStore",
    "SQLiteMetricsStore",
    "TITLES",
    "AGENCIES",
    "HISTORICAL",
]

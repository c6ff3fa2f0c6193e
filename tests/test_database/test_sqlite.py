"""
Tests specific to the SQLite metrics store: persistence across connections
and error wrapping.
"""

import sqlite3
from datetime import date
from unittest.mock import MagicMock

import pytest

from ecfranalyzer.database import TITLES, SQLiteMetricsStore
from ecfranalyzer.errors import PersistenceError
from ecfranalyzer.models import HistoricalSnapshot, Title


class TestPersistence:
    """Tests for data surviving a reopen."""

    def test_data_survives_reopen(self, tmp_path):
        # Arrange
        path = str(tmp_path / "metrics.db")
        store = SQLiteMetricsStore(path)
        store.upsert_title(Title(number=3, name="The President", word_count=77))
        store.insert_snapshot(HistoricalSnapshot.from_counts(date(2024, 5, 1), {"3": 77}, {}))
        store.close()

        # Act
        reopened = SQLiteMetricsStore(path)

        # Assert
        assert reopened.get_titles()[0].word_count == 77
        assert reopened.get_snapshot(date(2024, 5, 1)).total_word_count == 77
        reopened.close()

    def test_duplicate_insert_across_connections(self, tmp_path):
        """Test that the primary key refuses a second snapshot from another connection."""
        # Arrange
        path = str(tmp_path / "metrics.db")
        first, second = SQLiteMetricsStore(path), SQLiteMetricsStore(path)
        snapshot = HistoricalSnapshot.from_counts(date(2024, 5, 1), {"1": 1}, {})

        # Act / Assert
        assert first.insert_snapshot(snapshot) is True
        assert second.insert_snapshot(snapshot) is False
        first.close()
        second.close()

    def test_in_memory_database(self):
        store = SQLiteMetricsStore(":memory:")

        store.upsert_title(Title(number=1, name="General Provisions"))

        assert len(store.get_titles()) == 1
        store.close()


class TestErrorWrapping:
    """Tests that sqlite3 errors surface as PersistenceError."""

    def test_write_failure_wrapped(self, sqlite_store):
        # Arrange
        broken = MagicMock(wraps=sqlite_store.conn)
        broken.execute.side_effect = sqlite3.OperationalError("disk I/O error")
        sqlite_store.conn = broken

        # Act / Assert
        with pytest.raises(PersistenceError) as exc_info:
            sqlite_store.insert(TITLES, {"number": 1})
        assert exc_info.value.collection == TITLES

    def test_read_failure_wrapped(self, sqlite_store):
        broken = MagicMock(wraps=sqlite_store.conn)
        broken.execute.side_effect = sqlite3.DatabaseError("malformed")
        sqlite_store.conn = broken

        with pytest.raises(PersistenceError):
            sqlite_store.find_all(TITLES)

    def test_unopenable_path(self, tmp_path):
        with pytest.raises(PersistenceError):
            SQLiteMetricsStore(str(tmp_path / "missing-dir" / "metrics.db"))

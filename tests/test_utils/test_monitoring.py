"""
Tests for the PerformanceMonitor.
"""

from unittest.mock import patch

import pytest

from ecfranalyzer.utils.monitoring import PerformanceMonitor


@pytest.fixture
def clock():
    """Patch time.monotonic with a controllable value."""
    with patch("ecfranalyzer.utils.monitoring.time.monotonic") as monotonic:
        monotonic.return_value = 100.0
        yield monotonic


class TestPerformanceMonitor:
    """Tests for counters, statistics and summaries."""

    def test_not_started(self):
        monitor = PerformanceMonitor()

        assert monitor.get_statistics() == {"error": "Monitor not started"}
        assert monitor.summary() == "Monitor not started"

    def test_statistics(self, clock):
        # Arrange
        monitor = PerformanceMonitor()
        monitor.start()
        monitor.record_title(processing_time_ms=100.0)
        monitor.record_title(processing_time_ms=300.0)
        monitor.record_title(processing_time_ms=50.0, degraded=True)
        monitor.record_title(degraded=True)
        clock.return_value = 130.0

        # Act
        stats = monitor.get_statistics(total_titles=10)

        # Assert
        assert stats["titles_processed"] == 2
        assert stats["titles_degraded"] == 2
        assert stats["total_recorded"] == 4
        assert stats["success_rate"] == 50.0
        assert stats["elapsed_time_seconds"] == 30.0
        assert stats["throughput_per_minute"] == 8.0
        assert stats["avg_processing_time_ms"] == 150.0
        assert stats["remaining_titles"] == 6
        assert stats["completion_percentage"] == 40.0

    def test_start_resets(self, clock):
        monitor = PerformanceMonitor()
        monitor.start()
        monitor.record_title(processing_time_ms=5.0)

        monitor.start()

        assert monitor.titles_processed == 0
        assert monitor.processing_times == []

    def test_summary(self, clock):
        monitor = PerformanceMonitor()
        monitor.start()
        monitor.record_title()
        monitor.record_title(degraded=True)
        clock.return_value = 175.0

        assert monitor.summary() == "1 titles counted, 1 degraded, 50.0% success in 1m 15s"

    def test_zero_elapsed_and_no_titles(self, clock):
        monitor = PerformanceMonitor()
        monitor.start()

        stats = monitor.get_statistics()

        assert stats["success_rate"] == 0.0
        assert stats["throughput_per_minute"] == 0.0
        assert "avg_processing_time_ms" not in stats

    @pytest.mark.parametrize(
        "seconds, expected",
        [(42.66, "42.7s"), (185, "3m 5s"), (8100, "2h 15m")],
    )
    def test_format_duration(self, seconds, expected):
        assert PerformanceMonitor._format_duration(seconds) == expected

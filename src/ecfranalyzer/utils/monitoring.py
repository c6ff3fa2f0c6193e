"""
Performance monitoring for synchronization passes.

A sync pass fans out into one content download and word count per title. This
module keeps the running tally for a pass: how many titles were counted from
real content, how many fell back to a degraded zero, how long each one took,
and the resulting throughput. The orchestrator logs the summary at the end of
every pass so operators can tell a genuinely small title from a failed one.

Python Learning Notes:
    - time.monotonic() is the right clock for measuring elapsed time because
      it never jumps backwards when the wall clock is adjusted
    - Instance variables track state across method calls
"""

import time
from typing import Any, Dict, List, Optional


class PerformanceMonitor:
    """
    Tracks per-title timing and outcome counts for one sync pass.

    Attributes:
        start_time (Optional[float]): Monotonic timestamp when the pass started.
        titles_processed (int): Titles counted from real content.
        titles_degraded (int): Titles recorded as degraded zero counts.
        processing_times (List[float]): Per-title durations in milliseconds.

    Example:
        monitor = PerformanceMonitor()
        monitor.start()
        monitor.record_title(processing_time_ms=812.5)
        monitor.record_title(degraded=True)
        stats = monitor.get_statistics(total_titles=50)
        print(f"{stats['titles_degraded']} degraded, {stats['success_rate']:.1f}% ok")
    """

    def __init__(self):
        self.start_time: Optional[float] = None
        self.titles_processed: int = 0
        self.titles_degraded: int = 0
        self.processing_times: List[float] = []

    def start(self) -> None:
        """Reset all counters and begin timing."""
        self.start_time = time.monotonic()
        self.titles_processed = 0
        self.titles_degraded = 0
        self.processing_times = []

    def record_title(
        self, processing_time_ms: Optional[float] = None, degraded: bool = False
    ) -> None:
        """
        Record the outcome of one title.

        Args:
            processing_time_ms (Optional[float]): Time spent fetching and
                counting the title, in milliseconds.
            degraded (bool): True when the title's count is a substituted zero
                rather than a measurement.
        """
        if degraded:
            self.titles_degraded += 1
        else:
            self.titles_processed += 1
        if processing_time_ms is not None:
            self.processing_times.append(processing_time_ms)

    def get_statistics(self, total_titles: Optional[int] = None) -> Dict[str, Any]:
        """
        Get current statistics for the pass.

        Args:
            total_titles (Optional[int]): Number of titles in the pass. When
                provided, adds the remaining count and completion percentage.

        Returns:
            Dict[str, Any]: elapsed_time_seconds, elapsed_time_formatted,
                titles_processed, titles_degraded, total_recorded,
                success_rate, throughput_per_minute and, when timings exist,
                avg_processing_time_ms.
        """
        if self.start_time is None:
            return {"error": "Monitor not started"}

        elapsed_time = time.monotonic() - self.start_time
        total_recorded = self.titles_processed + self.titles_degraded

        stats: Dict[str, Any] = {
            "elapsed_time_seconds": elapsed_time,
            "elapsed_time_formatted": self._format_duration(elapsed_time),
            "titles_processed": self.titles_processed,
            "titles_degraded": self.titles_degraded,
            "total_recorded": total_recorded,
            "success_rate": (
                (self.titles_processed / total_recorded * 100)
                if total_recorded > 0
                else 0.0
            ),
            "throughput_per_minute": (
                (total_recorded / elapsed_time * 60) if elapsed_time > 0 else 0.0
            ),
        }

        if self.processing_times:
            stats["avg_processing_time_ms"] = sum(self.processing_times) / len(
                self.processing_times
            )

        if total_titles:
            stats["remaining_titles"] = max(total_titles - total_recorded, 0)
            stats["completion_percentage"] = total_recorded / total_titles * 100

        return stats

    def summary(self, total_titles: Optional[int] = None) -> str:
        """One-line human-readable summary for log output."""
        stats = self.get_statistics(total_titles)
        if "error" in stats:
            return stats["error"]
        return (
            f"{stats['titles_processed']} titles counted, "
            f"{stats['titles_degraded']} degraded, "
            f"{stats['success_rate']:.1f}% success in {stats['elapsed_time_formatted']}"
        )

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """
        Format a duration as "2h 15m", "3m 5s" or "42.7s".

        Python Learning Notes:
            - Integer division and modulo split seconds into larger units
        """
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds / 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds / 3600)
            minutes = int((seconds % 3600) / 60)
            return f"{hours}h {minutes}m"

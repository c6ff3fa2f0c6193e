"""
Processors turn fetched eCFR content into metrics.

Available Components:
    - text_metrics: whole-buffer and streaming word counts, text analysis
    - AggregationEngine: weighted roll-up of title counts into agency counts
    - HistoricalDiffEngine: day-over-day change records
    - SyntheticDataGenerator: fallback dataset when the API is down
"""

from .aggregation import AggregationEngine, AggregationResult
from .history import HistoricalDiffEngine
from .synthetic import SyntheticDataGenerator
from .text_metrics import (
    StreamingWordCounter,
    analyze_text,
    compare_versions,
    word_count,
    word_count_streaming,
)

__all__ = [
    "AggregationEngine",
    "AggregationResult",
    "HistoricalDiffEngine",
    "SyntheticDataGenerator",
    "StreamingWordCounter",
    "analyze_text",
    "compare_versions",
    "word_count",
    "word_count_streaming",
]

"""
ECFR Analyzer: word-count metrics for the Electronic Code of Federal Regulations.

ECFR Analyzer pulls the eCFR agency and title catalogs, measures the size of
every title by counting the words in its full-text XML, allocates those counts
to the agencies that reference each title, and keeps a one-snapshot-per-day
history of the totals together with the changes since the previous snapshot.

The system provides:
    - A resilient HTTP layer with response caching and bounded retry/backoff
    - Whole-buffer and streaming word counting over multi-megabyte XML
    - Reference-weighted roll-up of title counts into agency and child-agency totals
    - Day-over-day diffing that produces a change feed
    - A synchronization pass with per-entity failure isolation and a synthetic
      fallback dataset for when the upstream API is unavailable

Package Structure:
    - apis/: eCFR API client, HTTP fetch layer, response cache, payload schemas
    - processors/: Text metrics, aggregation, historical diffing, synthetic data
    - database/: Abstract metrics store with in-memory and SQLite backends
    - ingestion/: The sync orchestrator that drives one full pass
    - utils/: Logging setup, configuration, and pass-level monitoring

Entry Point:
    python -m ecfranalyzer runs a single synchronization pass. Both a cold
    start and the periodic scheduler call the same pass; the one-snapshot-per-day
    guard makes repeated calls on the same day safe.

Version History:
    - 0.1.0: Initial release with title/agency metrics and daily history
"""

__version__ = "0.1.0"

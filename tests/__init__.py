"""
Test suite for ECFR Analyzer.

This package contains the unit and integration tests for ECFR Analyzer,
organized by module to mirror the source code structure.

Test Organization:
    - test_apis/: HTTP fetch layer, response cache, schemas, eCFR client
    - test_processors/: Word counting, aggregation, diffing, synthetic data
    - test_database/: In-memory and SQLite metrics stores
    - test_ingestion/: The sync orchestrator end to end
    - test_utils/: Configuration and monitoring
"""

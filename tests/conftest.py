"""
Shared test fixtures and configuration for ECFR Analyzer tests.

This module provides reusable fixtures for testing ECFR Analyzer. It
centralizes sample catalog payloads, a fast test configuration and fresh
stores so that individual test files stay focused on behavior.

Key Fixtures:
    - test_config: SyncConfig with no retry delay, installed process-wide
    - titles_payload / agencies_payload: Sample eCFR catalog responses
    - memory_store / sqlite_store: Empty metrics stores

Python Learning Notes:
    - conftest.py is automatically discovered by pytest
    - Fixtures defined here are available to all tests without import
    - yield in fixtures allows teardown code after the test
"""

from typing import Any, Dict

import pytest

from ecfranalyzer.database import InMemoryMetricsStore, SQLiteMetricsStore
from ecfranalyzer.utils.config import SyncConfig, set_config

BASE_URL = "https://ecfr.test"


@pytest.fixture(autouse=True)
def reset_config():
    """Clear the process-wide config before and after every test."""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def test_config() -> SyncConfig:
    """
    Configuration tuned for tests: no backoff delay, a fake base URL and a
    small worker pool. Installed as the process-wide config.
    """
    config = SyncConfig(
        base_url=BASE_URL,
        retry_backoff=0.0,
        max_attempts=3,
        max_concurrency=3,
        cache_ttl=3600,
        synthetic_days=5,
        fallback_date="2023-01-01",
    )
    set_config(config)
    return config


@pytest.fixture
def titles_payload() -> Dict[str, Any]:
    """Sample response of /api/versioner/v1/titles.json."""
    return {
        "titles": [
            {
                "number": 1,
                "name": "General Provisions",
                "latest_amended_on": "2024-03-01",
                "latest_issue_date": "2024-05-01",
                "up_to_date_as_of": "2024-05-10",
                "reserved": False,
            },
            {
                "number": 2,
                "name": "Grants and Agreements",
                "latest_amended_on": "2024-02-01",
                "latest_issue_date": "2024-05-08",
                "up_to_date_as_of": "2024-05-10",
                "reserved": False,
            },
            {
                "number": 35,
                "name": "Reserved",
                "latest_amended_on": None,
                "latest_issue_date": None,
                "up_to_date_as_of": None,
                "reserved": True,
            },
        ],
        "meta": {"date": "2024-05-10"},
    }


@pytest.fixture
def agencies_payload() -> Dict[str, Any]:
    """Sample response of /api/admin/v1/agencies.json with one child agency."""
    return {
        "agencies": [
            {
                "name": "Administrative Conference of the United States",
                "short_name": "ACUS",
                "display_name": "Administrative Conference of the United States",
                "sortable_name": "Administrative Conference of the United States",
                "slug": "administrative-conference-of-the-united-states",
                "children": [],
                "cfr_references": [{"title": 1, "chapter": "III"}],
            },
            {
                "name": "Department of Agriculture",
                "short_name": "USDA",
                "slug": "agriculture-department",
                "children": [
                    {
                        "name": "Forest Service",
                        "slug": "forest-service",
                        "children": [],
                        "cfr_references": [{"title": 2, "chapter": "IV"}],
                    }
                ],
                "cfr_references": [
                    {"title": 2, "chapter": "IV"},
                    {"title": 7, "subtitle": "A"},
                ],
            },
        ]
    }


@pytest.fixture
def memory_store() -> InMemoryMetricsStore:
    return InMemoryMetricsStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """SQLite store in a temporary directory, closed after the test."""
    store = SQLiteMetricsStore(str(tmp_path / "metrics.db"))
    yield store
    store.close()

"""Tests for ecfranalyzer.ingestion."""

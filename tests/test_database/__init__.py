"""Tests for ecfranalyzer.database."""

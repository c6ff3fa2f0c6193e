"""Tests for ecfranalyzer.processors."""

"""Tests for ecfranalyzer.utils."""

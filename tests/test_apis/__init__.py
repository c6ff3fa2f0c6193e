"""Tests for ecfranalyzer.apis."""

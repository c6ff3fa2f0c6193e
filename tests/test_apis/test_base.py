"""
Unit tests for the RegulatoryAPIClient abstract base class.

Python Learning Notes:
    - An ABC cannot be instantiated until every abstract method is overridden
    - A minimal concrete subclass is the simplest way to test shared logic
"""

import pytest

from ecfranalyzer.apis.base import RegulatoryAPIClient


class MinimalClient(RegulatoryAPIClient):
    """Smallest concrete client, used to exercise the base class."""

    def _get_base_url(self) -> str:
        return "https://example.test"

    async def get_agencies(self):
        return []

    async def get_titles(self):
        return []

    async def get_latest_available_date(self) -> str:
        return "2024-01-01"

    def stream_title_content(self, title_number, date):
        return iter([])


class TestAbstractContract:
    """Tests for the abstract interface."""

    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            RegulatoryAPIClient()

    def test_incomplete_subclass_rejected(self):
        class Incomplete(RegulatoryAPIClient):
            def _get_base_url(self):
                return "https://example.test"

        with pytest.raises(TypeError):
            Incomplete()

    def test_base_url_set_from_subclass(self):
        assert MinimalClient().base_url == "https://example.test"


class TestValidateDateFormat:
    """Tests for validate_date_format."""

    @pytest.mark.parametrize("value", ["2024-01-15", "2000-02-29"])
    def test_valid_dates(self, value):
        # Act / Assert: no exception
        MinimalClient().validate_date_format(value)

    @pytest.mark.parametrize(
        "value", ["01/15/2024", "2024-1-5", "2024-13-01", "2023-02-29", "", "latest"]
    )
    def test_invalid_dates(self, value):
        with pytest.raises(ValueError):
            MinimalClient().validate_date_format(value)

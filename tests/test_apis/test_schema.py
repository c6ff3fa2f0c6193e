"""
Unit tests for catalog schemas and per-entry validation.
"""

import pytest

from ecfranalyzer.apis.schema import (
    AgencyRecord,
    parse_agency_catalog,
    parse_title_catalog,
)
from ecfranalyzer.errors import MalformedContent
from ecfranalyzer.models import Title
from ecfranalyzer.processors.aggregation import AggregationEngine


class TestAgencyCatalog:
    """Tests for parse_agency_catalog."""

    def test_unknown_fields_are_ignored(self, agencies_payload):
        # Arrange
        agencies_payload["agencies"][0]["brand_new_field"] = {"x": 1}

        # Act
        records = parse_agency_catalog(agencies_payload)

        # Assert
        assert len(records) == 2
        assert not hasattr(records[0], "brand_new_field")

    def test_malformed_entry_is_dropped(self, agencies_payload):
        """Test that one bad entry does not sink the whole catalog."""
        # Arrange
        agencies_payload["agencies"].insert(1, {"slug": "no-name", "cfr_references": "bad"})

        # Act
        records = parse_agency_catalog(agencies_payload)

        # Assert
        assert [r.slug for r in records] == [
            "administrative-conference-of-the-united-states",
            "agriculture-department",
        ]

    def test_missing_slug_is_kept_for_aggregation(self):
        records = parse_agency_catalog({"agencies": [{"name": "Nameless Board"}]})

        assert records[0].slug is None
        assert records[0].children == []
        assert records[0].cfr_references == []

    @pytest.mark.parametrize("payload", [None, [], {"agencies": None}, {"titles": []}])
    def test_bad_envelope_raises(self, payload):
        with pytest.raises(MalformedContent):
            parse_agency_catalog(payload)

    def test_nested_children_validate(self):
        record = AgencyRecord.model_validate(
            {
                "name": "Parent",
                "slug": "parent",
                "children": [{"name": "Child", "slug": "child", "cfr_references": [{"title": 5}]}],
            }
        )

        assert record.children[0].cfr_references[0].title == 5


class TestNestedIsolation:
    """Tests that malformed children and references are dropped one at a time."""

    @pytest.fixture
    def family_payload(self):
        return {
            "agencies": [
                {
                    "name": "Department of Agriculture",
                    "slug": "agriculture-department",
                    "cfr_references": [{"title": 7}, {"chapter": "II"}],
                    "children": [
                        {"name": "Good Child", "slug": "good-child", "cfr_references": [{"title": 7}]},
                        {"name": "Bad Child", "slug": "bad-child", "cfr_references": [{"chapter": "IX"}]},
                        {"slug": "nameless-child"},
                    ],
                }
            ]
        }

    def test_bad_child_and_reference_leave_family_aggregated(self, family_payload):
        """Test that the parent and the good child keep their counts."""
        # Arrange
        titles = [Title(number=7, name="Agriculture", word_count=1000)]

        # Act
        records = parse_agency_catalog(family_payload)
        result = AggregationEngine().aggregate(titles, records)

        # Assert
        assert [c.slug for c in records[0].children] == ["good-child", "bad-child"]
        assert records[0].children[1].cfr_references == []
        assert [r.title for r in records[0].cfr_references] == [7]
        assert result.agency_counts == {
            "agriculture-department": 100,
            "good-child": 50,
            "bad-child": 0,
        }

    def test_non_list_children_ignored(self):
        records = parse_agency_catalog(
            {"agencies": [{"name": "Board", "slug": "board", "children": "oops"}]}
        )

        assert records[0].slug == "board"
        assert records[0].children == []

    def test_children_of_invalid_parent_are_kept(self, family_payload):
        """Test that a parent without a name still yields its valid children."""
        # Arrange
        del family_payload["agencies"][0]["name"]
        titles = [Title(number=7, name="Agriculture", word_count=1000)]

        # Act
        records = parse_agency_catalog(family_payload)
        result = AggregationEngine().aggregate(titles, records)

        # Assert
        assert records[0].slug is None
        assert result.agency_counts == {"good-child": 50, "bad-child": 0}
        assert all(agency.parent_id is None for agency in result.agencies)
        assert result.skipped == 1


class TestTitleCatalog:
    """Tests for parse_title_catalog."""

    def test_parses_titles(self, titles_payload):
        titles = parse_title_catalog(titles_payload)

        assert [t.number for t in titles] == [1, 2, 35]
        assert titles[0].latest_issue_date == "2024-05-01"

    def test_invalid_title_number_dropped(self):
        titles = parse_title_catalog(
            {"titles": [{"number": 0, "name": "Zero"}, {"number": 3, "name": "The President"}]}
        )

        assert [t.number for t in titles] == [3]

    def test_missing_envelope_raises(self):
        with pytest.raises(MalformedContent):
            parse_title_catalog({"agencies": []})

"""
Unit tests for the AggregationEngine.
"""

from unittest.mock import patch

import pytest

from ecfranalyzer.apis.schema import AgencyRecord, CfrReferencePayload
from ecfranalyzer.models import Title
from ecfranalyzer.processors.aggregation import AggregationEngine


def agency(slug, refs, children=(), name=None):
    return AgencyRecord(
        name=name or (slug or "Unnamed").replace("-", " ").title(),
        slug=slug,
        cfr_references=[CfrReferencePayload(title=t) for t in refs],
        children=list(children),
    )


@pytest.fixture
def titles():
    return [
        Title(number=2, name="Grants and Agreements", word_count=2000),
        Title(number=1, name="General Provisions", word_count=1000),
    ]


class TestWeighting:
    """Tests for reference-weighted agency counts."""

    def test_parent_and_child_weights(self, titles):
        """Test one reference to a 1000-word title: parent 100, child 50."""
        # Arrange
        catalog = [agency("parent", [1], children=[agency("child", [1])])]

        # Act
        result = AggregationEngine().aggregate(titles, catalog)

        # Assert
        assert result.agency_counts == {"parent": 100, "child": 50}
        parent, child = result.agencies
        assert (parent.regulation_count, parent.parent_id) == (1, None)
        assert (child.regulation_count, child.parent_id) == (1, "parent")

    def test_multiple_references_sum(self, titles):
        result = AggregationEngine().aggregate(titles, [agency("a", [1, 2, 2])])

        assert result.agency_counts["a"] == 500
        assert result.agencies[0].regulation_count == 3

    def test_child_words_not_subtracted_from_parent(self, titles):
        catalog = [agency("p", [2], children=[agency("c1", [2]), agency("c2", [1])])]

        result = AggregationEngine().aggregate(titles, catalog)

        assert result.agency_counts == {"p": 200, "c1": 100, "c2": 50}

    def test_missing_title_contributes_zero(self, titles):
        """Test that a reference to an unknown title counts but adds no words."""
        result = AggregationEngine().aggregate(titles, [agency("a", [1, 99])])

        assert result.agency_counts["a"] == 100
        assert result.agencies[0].regulation_count == 2

    def test_custom_weights(self, titles):
        engine = AggregationEngine(parent_weight=0.5, child_weight=0.25)

        result = engine.aggregate(titles, [agency("p", [2], children=[agency("c", [2])])])

        assert result.agency_counts == {"p": 1000, "c": 500}

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            AggregationEngine(parent_weight=-0.1)

    def test_identical_inputs_identical_outputs(self, titles):
        engine = AggregationEngine()
        catalog = [agency("a", [1, 2]), agency("b", [2], children=[agency("c", [1])])]

        first = engine.aggregate(titles, catalog)
        second = engine.aggregate(titles, catalog)

        assert first.agency_counts == second.agency_counts
        assert first.title_counts == second.title_counts


class TestTitleCounts:
    """Tests for title_counts and totals."""

    def test_ordered_by_title_number(self, titles):
        result = AggregationEngine().aggregate(titles, [])

        assert list(result.title_counts) == ["1", "2"]
        assert result.total_word_count == 3000

    def test_references_preserved(self, titles):
        result = AggregationEngine().aggregate(titles, [agency("a", [2, 1])])

        assert [ref.title for ref in result.agencies[0].cfr_references] == [2, 1]


class TestRobustness:
    """Tests for skipped and failing agencies."""

    def test_agency_without_slug_skipped_children_kept(self, titles):
        """Test that a slug-less parent is skipped but its children are not."""
        # Arrange
        catalog = [agency(None, [1], children=[agency("orphan", [1])], name="No Slug")]

        # Act
        result = AggregationEngine().aggregate(titles, catalog)

        # Assert
        assert result.agency_counts == {"orphan": 50}
        assert result.agencies[0].parent_id is None
        assert result.skipped == 1

    def test_duplicate_slug_first_wins(self, titles):
        catalog = [agency("dup", [1]), agency("dup", [2])]

        result = AggregationEngine().aggregate(titles, catalog)

        assert result.agency_counts == {"dup": 100}
        assert len(result.agencies) == 1
        assert result.skipped == 1

    def test_failure_in_one_agency_records_zero(self, titles):
        """Test that an error for one agency leaves the others intact."""
        # Arrange
        engine = AggregationEngine()
        catalog = [agency("good", [1]), agency("bad", [2]), agency("also-good", [2])]

        # Act
        with patch.object(
            engine, "weighted_word_count", side_effect=[100, ArithmeticError("boom"), 200]
        ):
            result = engine.aggregate(titles, catalog)

        # Assert
        assert result.agency_counts == {"good": 100, "bad": 0, "also-good": 200}

"""
Tests for the DomainQuery builder and the result document.

Run with: pytest tests/test_builder.py -v
"""

import pytest

from customer_query.errors import QueryValidationError
from customer_query.filters import EntityFilter
from customer_query.query.builder import DomainQuery
from customer_query.query.results import DomainQueryResult


class TestDomainQuery:
    """Test the immutable fluent builder."""

    def test_steps_return_new_queries(self):
        """Test no step mutates the query it is called on."""
        base = DomainQuery().from_entity("CustomerProfile").where({"customer_id": "C001"})
        extended = base.with_related("Interaction", {"$limit": 3}).limit(10)

        assert base.related == ()
        assert base.max_rows is None
        assert len(extended.related) == 1
        assert extended.max_rows == 10

    def test_branches_do_not_share_state(self):
        """Test two queries built from one base stay independent."""
        base = DomainQuery().from_entity("CustomerProfile").where({"customer_id": "C001"})
        first = base.select_fields("Interaction", "id")
        second = base.select_fields("Interaction", "summary")

        assert first.selected_fields == {"interaction": ("id",)}
        assert second.selected_fields == {"interaction": ("summary",)}
        assert base.selected_fields == {}

    def test_where_parses_filter(self):
        """Test the primary filter is parsed with $limit split out."""
        query = DomainQuery().from_entity("CustomerProfile").where({"email": "a@x.com", "$limit": 2})

        assert query.primary_filter == EntityFilter(conditions={"email": "a@x.com"}, limit=2)

    def test_where_replaces_filter(self):
        """Test calling where() again replaces the filter."""
        query = DomainQuery().from_entity("CustomerProfile").where({"email": "a@x.com"}).where({"customer_id": "C002"})
        assert query.primary_filter.conditions == {"customer_id": "C002"}

    def test_where_rejects_non_object(self):
        """Test a filter that is not an object is rejected at build time."""
        with pytest.raises(QueryValidationError, match="Filter must be an object"):
            DomainQuery().from_entity("CustomerProfile").where(["C001"])

    def test_with_related_keeps_submission_order(self):
        """Test related requests are kept in the order given."""
        query = DomainQuery().from_entity("CustomerProfile").where({"customer_id": "C001"}).with_related("Product", parent="Subscription").with_related("Subscription")

        assert [r.entity_name for r in query.related] == ["Product", "Subscription"]
        assert query.related[0].parent_entity == "Subscription"
        assert query.related[1].filter is None

    def test_select_replaces_selection(self):
        """Test select() replaces the previous selection."""
        query = DomainQuery().select("Subscription").select("Product", "Interaction")
        assert query.selected_entities == ("Product", "Interaction")

    def test_select_fields_accumulates(self):
        """Test select_fields() adds to an entity's field list without duplicates."""
        query = DomainQuery().select_fields("Interaction", "id").select_fields("interaction", "id", "channel")
        assert query.selected_fields == {"interaction": ("id", "channel")}


class TestDomainQueryResult:
    """Test the result document."""

    def test_success_document(self):
        """Test a successful result leaves out error and empty warnings."""
        result = DomainQueryResult(data={"customerprofile": None}, counts={"customerprofile": 0})

        assert result.to_document() == {"success": True, "data": {"customerprofile": None}, "counts": {"customerprofile": 0}}

    def test_failed_document(self):
        """Test a failed result carries the error and any warnings."""
        result = DomainQueryResult.failed("Unknown entity: Invoice", ["some warning"])

        assert result.to_document() == {"success": False, "error": "Unknown entity: Invoice", "data": {}, "counts": {}, "warnings": ["some warning"]}

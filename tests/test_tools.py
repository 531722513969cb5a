"""
Tests for the named customer operations.

Run with: pytest tests/test_tools.py -v
"""

import asyncio

from customer_query.query import tools


class TestQueryConstruction:
    """Test the queries each operation builds."""

    def test_customer_360_query(self):
        """Test the 360 query joins all three related entities."""
        query = tools.customer_360_query({"customer_id": "C001"}, subscription={"status": "active"})

        assert query.primary_entity == "CustomerProfile"
        assert [(r.entity_name, r.parent_entity) for r in query.related] == [("Subscription", None), ("Product", "Subscription"), ("Interaction", None)]
        assert query.related[0].filter.conditions == {"status": "active"}

    def test_customer_products_query_selects_products(self):
        """Test the products query joins Subscription but returns only Product."""
        query = tools.customer_products_query({"customer_id": "C001"})

        assert [r.entity_name for r in query.related] == ["Subscription", "Product"]
        assert query.selected_entities == ("Product",)

    def test_customer_profile_query(self):
        """Test the profile query joins nothing and caps rows at one."""
        query = tools.customer_profile_query({"email": "john.doe@example.com"})

        assert query.related == ()
        assert query.max_rows == 1


class TestOperations:
    """Test the operations against the seeded database."""

    def test_get_customer_360(self, service):
        """Test the 360 view for one customer."""
        result = asyncio.run(tools.get_customer_360(service, {"email": "jane.smith@example.com"}))

        assert result.success
        assert result.counts == {"customerprofile": 1, "subscription": 2, "interaction": 2, "product": 4}

    def test_get_customer_subscriptions(self, service):
        """Test active subscriptions with their products."""
        result = asyncio.run(tools.get_customer_subscriptions(service, {"customer_id": "C004"}, {"status": "active"}))

        assert [s["plan_name"] for s in result.data["subscription"]] == ["Premium"]
        assert result.counts["product"] == 3
        assert "interaction" not in result.data

    def test_get_customer_subscriptions_by_product(self, service):
        """Test the product filter narrows products while subscriptions stay."""
        result = asyncio.run(tools.get_customer_subscriptions_by_product(service, {"customer_id": "C004"}, {"sku": "CRM-STD"}))

        assert result.counts["subscription"] == 3
        assert [p["subscription_id"] for p in result.data["product"]] == [8, 9]

    def test_get_customer_products(self, service):
        """Test only the product list is returned."""
        result = asyncio.run(tools.get_customer_products(service, {"customer_id": "C003"}))

        assert list(result.data) == ["product"]
        assert sorted(p["sku"] for p in result.data["product"]) == ["CS-BAS", "STR-100"]

    def test_get_customer_interactions(self, service):
        """Test interaction history filtered by channel."""
        result = asyncio.run(tools.get_customer_interactions(service, {"customer_id": "C005"}, {"channel": "phone"}))

        assert result.counts["interaction"] == 1
        assert result.data["interaction"][0]["summary"] == "New customer onboarding call completed"

    def test_get_customer_profile(self, service):
        """Test the profile operation returns only the profile."""
        result = asyncio.run(tools.get_customer_profile(service, {"phone": "+1-555-0104"}))

        assert result.data == {"customerprofile": result.data["customerprofile"]}
        assert result.data["customerprofile"]["name"] == "Alice Johnson"

    def test_get_customer_profile_requires_filter(self, service):
        """Test an empty profile filter is rejected."""
        result = asyncio.run(tools.get_customer_profile(service, {}))

        assert result.success is False
        assert result.error == "Filter not specified. Call where() first."

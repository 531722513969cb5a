"""
Tests for the entity schema models and the schema registry.

Run with: pytest tests/test_schema.py -v
"""

import json

import pytest
from pydantic import ValidationError

from customer_query.errors import QueryValidationError
from customer_query.schema import EntitySchema, SchemaRegistry, SemanticType


def _document(**overrides):
    """Two-entity schema document: Order belongs to Account."""
    document = {
        "defaultLimit": 50,
        "maxLimit": 200,
        "entities": {
            "Account": {
                "tableName": "accounts",
                "identifierField": "id",
                "fields": {"id": {"type": "int"}, "email": {"type": "string"}, "balance": {"type": "money"}},
                "allowedFilterFields": ["email"],
                "relationships": {"Order": {"foreignKey": "id", "localKey": "account_id"}},
            },
            "Order": {
                "tableName": "orders",
                "identifierField": "id",
                "fields": {"id": {"type": "integer"}, "account_id": {"type": "integer"}, "placed_at": {"type": "date"}, "paid": {"type": "bool"}},
                "allowedFilterFields": ["placed_at", "paid"],
                "defaultOrderBy": "placed_at DESC, id",
            },
        },
    }
    document.update(overrides)
    return document


class TestSchemaRegistry:
    """Test registry loading and lookup."""

    def test_packaged_schema_loads(self, registry):
        """Test the packaged entities.json loads with all four entities."""
        assert sorted(registry.entity_names) == ["CustomerProfile", "Interaction", "Product", "Subscription"]
        assert registry.default_limit == 100
        assert registry.max_limit == 1000

    def test_lookup_is_case_insensitive(self, registry):
        """Test entity names resolve regardless of case."""
        assert registry.lookup("customerprofile") is registry.lookup("CUSTOMERPROFILE")
        assert registry.lookup("Subscription").table_name == "Subscription"
        assert "product" in registry

    def test_lookup_unknown_entity(self, registry):
        """Test lookup returns None and require raises for unknown names."""
        assert registry.lookup("Invoice") is None
        assert registry.lookup("") is None
        with pytest.raises(QueryValidationError, match="Unknown entity: Invoice"):
            registry.require("Invoice")

    def test_limits_from_document(self):
        """Test defaultLimit and maxLimit are read from the document."""
        registry = SchemaRegistry.from_document(_document())
        assert registry.default_limit == 50
        assert registry.max_limit == 200
        assert len(registry) == 2

    def test_from_file(self, tmp_path):
        """Test loading a schema document from disk."""
        path = tmp_path / "entities.json"
        path.write_text(json.dumps(_document()), encoding="utf-8")

        registry = SchemaRegistry.from_file(path)
        assert registry.require("order").default_order_by == "placed_at DESC, id"

    def test_non_positive_limits_rejected(self):
        """Test the global limits must be positive."""
        with pytest.raises(ValueError):
            SchemaRegistry.from_document(_document(maxLimit=0))

    def test_duplicate_names_rejected(self):
        """Test two entities differing only in case are rejected."""
        account = SchemaRegistry.from_document(_document()).require("Account")
        with pytest.raises(ValueError, match="Duplicate entity name"):
            SchemaRegistry({"Account": account, "ACCOUNT": account})

    def test_relationship_to_unknown_entity_rejected(self):
        """Test relationships must target declared entities."""
        document = _document()
        document["entities"]["Account"]["relationships"] = {"Invoice": {"foreignKey": "id"}}
        with pytest.raises(ValueError, match="unknown entity 'Invoice'"):
            SchemaRegistry.from_document(document)

    def test_local_key_must_exist_on_target(self):
        """Test an explicit localKey is checked against the other entity's fields."""
        document = _document()
        document["entities"]["Account"]["relationships"]["Order"]["localKey"] = "owner_id"
        with pytest.raises(ValueError, match="localKey 'owner_id'"):
            SchemaRegistry.from_document(document)


class TestEntitySchema:
    """Test schema validation and helpers."""

    def test_type_aliases_normalized(self):
        """Test int/money/date/bool spellings map onto semantic types."""
        registry = SchemaRegistry.from_document(_document())
        account = registry.require("Account")
        order = registry.require("Order")

        assert account.field_type("id") is SemanticType.INTEGER
        assert account.field_type("balance") is SemanticType.DECIMAL
        assert order.field_type("placed_at") is SemanticType.DATETIME
        assert order.field_type("paid") is SemanticType.BOOLEAN

    def test_entity_key(self, registry):
        """Test the result key is the lower-cased entity name."""
        assert registry.require("CustomerProfile").entity_key == "customerprofile"

    def test_allowed_filter_field_canonical_spelling(self, registry):
        """Test allowlist matching ignores case and returns the declared spelling."""
        subscription = registry.require("Subscription")
        assert subscription.allowed_filter_field("STATUS") == "status"
        assert subscription.allowed_filter_field("customer_id") is None

    def test_relationship_to_is_case_insensitive(self, registry):
        """Test relationships are found by other entity name ignoring case."""
        subscription = registry.require("Subscription")
        relationship = subscription.relationship_to("product")
        assert relationship.foreign_key == "id"
        assert relationship.local_key == "subscription_id"
        assert subscription.relationship_to("Interaction") is None

    def test_identifier_must_be_declared(self):
        """Test identifierField must be one of the fields."""
        with pytest.raises(ValidationError, match="identifierField"):
            EntitySchema.model_validate({"name": "X", "tableName": "x", "identifierField": "id", "fields": {"name": {"type": "string"}}})

    def test_allowlist_must_be_declared(self):
        """Test allowedFilterFields must be a subset of fields."""
        with pytest.raises(ValidationError, match="allowedFilterFields"):
            EntitySchema.model_validate(
                {"name": "X", "tableName": "x", "identifierField": "id", "fields": {"id": {"type": "int"}}, "allowedFilterFields": ["password"]}
            )

    def test_table_name_must_be_identifier(self):
        """Test table names cannot carry SQL."""
        with pytest.raises(ValidationError, match="Invalid table name"):
            EntitySchema.model_validate({"name": "X", "tableName": "x; DROP TABLE y", "identifierField": "id", "fields": {"id": {"type": "int"}}})

    def test_default_order_by_must_use_declared_fields(self):
        """Test defaultOrderBy is limited to declared fields with an optional direction."""
        with pytest.raises(ValidationError, match="defaultOrderBy"):
            EntitySchema.model_validate(
                {"name": "X", "tableName": "x", "identifierField": "id", "fields": {"id": {"type": "int"}}, "defaultOrderBy": "(SELECT 1)"}
            )

    def test_unknown_type_rejected(self):
        """Test unrecognised field types fail validation."""
        with pytest.raises(ValidationError):
            EntitySchema.model_validate({"name": "X", "tableName": "x", "identifierField": "id", "fields": {"id": {"type": "uuid"}}})

"""
Entity schema models and the process-wide schema registry.

The schema document (``entities.json``) declares every queryable entity: its
table, identifier, typed fields, the subset of fields callers may filter on,
a default ordering, and relationships to other entities. It is loaded once at
startup into an immutable `SchemaRegistry`; all entity-specific behavior of
the query planner is driven by this data.

Example:

    >>> registry = SchemaRegistry.from_file("entities.json")
    >>> schema = registry.require("customerprofile")
    >>> schema.table_name
    'CustomerProfile'
"""

import json
import re
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import QueryValidationError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# One term of defaultOrderBy: "<field>" or "<field> ASC|DESC"
ORDER_TERM_PATTERN = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)(?:\s+(?:ASC|DESC))?\s*$", re.IGNORECASE)


class SemanticType(str, Enum):
    """Semantic type of an entity field, used for parameter coercion."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"


# Spellings accepted in schema documents
_TYPE_ALIASES = {
    "str": SemanticType.STRING,
    "text": SemanticType.STRING,
    "int": SemanticType.INTEGER,
    "long": SemanticType.INTEGER,
    "money": SemanticType.DECIMAL,
    "numeric": SemanticType.DECIMAL,
    "float": SemanticType.DECIMAL,
    "bool": SemanticType.BOOLEAN,
    "date": SemanticType.DATETIME,
}


def _check_identifier(name: str, what: str) -> str:
    if not IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid {what} '{name}': only letters, digits and underscores are allowed")
    return name


class FieldDefinition(BaseModel):
    """A single typed field of an entity."""

    model_config = ConfigDict(frozen=True)

    type: SemanticType = SemanticType.STRING
    description: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _TYPE_ALIASES.get(lowered, lowered)
        return value


class RelationshipDefinition(BaseModel):
    """
    Relationship from the declaring entity to another entity.

    Attributes:

        foreign_key: Field on the declaring side
        local_key: Field on the other side (defaults to the foreign key's name)
        cardinality: Documentation only, never enforced at query time
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    foreign_key: str = Field(alias="foreignKey")
    local_key: Optional[str] = Field(default=None, alias="localKey")
    cardinality: Literal["one-to-many", "many-to-one", "one-to-one"] = Field(default="one-to-many", alias="type")


class EntitySchema(BaseModel):
    """Schema definition for a single entity/table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    table_name: str = Field(alias="tableName")
    description: str = ""
    identifier_field: str = Field(alias="identifierField")
    fields: Dict[str, FieldDefinition]
    allowed_filter_fields: List[str] = Field(default_factory=list, alias="allowedFilterFields")
    default_order_by: Optional[str] = Field(default=None, alias="defaultOrderBy")
    relationships: Dict[str, RelationshipDefinition] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_fields(self) -> "EntitySchema":
        _check_identifier(self.table_name, "table name")
        for field_name in self.fields:
            _check_identifier(field_name, f"field name on {self.name}")
        if self.identifier_field not in self.fields:
            raise ValueError(f"{self.name}: identifierField '{self.identifier_field}' is not a declared field")
        unknown = [f for f in self.allowed_filter_fields if f not in self.fields]
        if unknown:
            raise ValueError(f"{self.name}: allowedFilterFields not declared in fields: {unknown}")
        for other, relationship in self.relationships.items():
            if relationship.foreign_key not in self.fields:
                raise ValueError(f"{self.name}: relationship to {other} uses undeclared foreignKey '{relationship.foreign_key}'")
        if self.default_order_by:
            for term in self.default_order_by.split(","):
                match = ORDER_TERM_PATTERN.match(term)
                if not match or match.group(1) not in self.fields:
                    raise ValueError(f"{self.name}: defaultOrderBy term '{term.strip()}' must be a declared field with optional ASC/DESC")
        return self

    @property
    def entity_key(self) -> str:
        """Key of this entity in result documents and column aliases."""
        return self.name.lower()

    def field_type(self, field_name: str) -> SemanticType:
        """Declared semantic type of a field, defaulting to string."""
        definition = self.fields.get(field_name)
        return definition.type if definition else SemanticType.STRING

    def allowed_filter_field(self, requested: str) -> Optional[str]:
        """Canonical spelling of an allowed filter field, or None if the field may not be filtered on."""
        lowered = requested.lower()
        for name in self.allowed_filter_fields:
            if name.lower() == lowered:
                return name
        return None

    def relationship_to(self, entity_name: str) -> Optional[RelationshipDefinition]:
        """Relationship declared on this entity towards `entity_name` (case-insensitive)."""
        lowered = entity_name.lower()
        for other, relationship in self.relationships.items():
            if other.lower() == lowered:
                return relationship
        return None


class SchemaRegistry:
    """
    Immutable, case-insensitive table of entity schemas.

    Built once from a schema document and shared read-only by every query.
    """

    def __init__(self, entities: Mapping[str, EntitySchema], default_limit: int = 100, max_limit: int = 1000):
        if default_limit <= 0 or max_limit <= 0:
            raise ValueError("defaultLimit and maxLimit must be positive")
        by_key: Dict[str, EntitySchema] = {}
        for name, schema in entities.items():
            key = name.lower()
            if key in by_key:
                raise ValueError(f"Duplicate entity name (case-insensitive): {name}")
            by_key[key] = schema
        self._entities = MappingProxyType(by_key)
        self._default_limit = default_limit
        self._max_limit = max_limit
        self._check_relationship_targets()

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "SchemaRegistry":
        """Build a registry from a parsed schema document."""
        raw_entities = document.get("entities") or {}
        entities = {name: EntitySchema.model_validate({**definition, "name": name}) for name, definition in raw_entities.items()}
        return cls(
            entities,
            default_limit=int(document.get("defaultLimit", 100)),
            max_limit=int(document.get("maxLimit", 1000)),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SchemaRegistry":
        """Load a registry from a JSON schema document on disk."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_document(json.load(f))

    def _check_relationship_targets(self) -> None:
        for schema in self._entities.values():
            for other, relationship in schema.relationships.items():
                target = self._entities.get(other.lower())
                if target is None:
                    raise ValueError(f"{schema.name}: relationship references unknown entity '{other}'")
                if relationship.local_key and relationship.local_key not in target.fields:
                    raise ValueError(f"{schema.name}: relationship to {other} uses localKey '{relationship.local_key}' not declared on {target.name}")

    @property
    def default_limit(self) -> int:
        return self._default_limit

    @property
    def max_limit(self) -> int:
        return self._max_limit

    @property
    def entity_names(self) -> List[str]:
        return [schema.name for schema in self._entities.values()]

    def lookup(self, name: str) -> Optional[EntitySchema]:
        """Find an entity schema by name, ignoring case."""
        if not name:
            return None
        return self._entities.get(name.lower())

    def require(self, name: str) -> EntitySchema:
        """Find an entity schema or fail the current query."""
        schema = self.lookup(name)
        if schema is None:
            raise QueryValidationError(f"Unknown entity: {name}")
        return schema

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._entities)

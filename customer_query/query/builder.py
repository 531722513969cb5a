"""
Immutable fluent builder for schema-driven domain queries.

A `DomainQuery` names a primary entity and its mandatory filter, the related
entities to join beneath it (each with its own MongoDB-style filter and an
optional parent), an output projection, and an overall row cap. Every step
returns a new `DomainQuery`; nothing is shared between queries.

Example:

    # Customer 360: profile plus subscriptions, their products, and interactions
    query = (
        DomainQuery()
        .from_entity("CustomerProfile")
        .where({"email": "john.doe@example.com"})
        .with_related("Subscription", {"status": "active", "$limit": 1})
        .with_related("Product", parent="Subscription")
        .with_related("Interaction", {"$limit": 5})
    )
    result = service.execute(query)

    # Products only
    query = (
        DomainQuery()
        .from_entity("CustomerProfile")
        .where({"customer_id": "C001"})
        .with_related("Subscription")
        .with_related("Product", parent="Subscription")
        .select("Product")
    )
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from customer_query.filters import EntityFilter

FilterDocument = Union[EntityFilter, Mapping[str, Any], None]


@dataclass(frozen=True)
class RelatedEntityRequest:
    """
    A related entity to join into the query.

    Attributes:

        entity_name: Entity name as declared in the schema document
        filter: Optional filter (with optional ``$limit``) for this entity
        parent_entity: Entity to join against; None means the primary entity
    """

    entity_name: str
    filter: Optional[EntityFilter] = None
    parent_entity: Optional[str] = None


@dataclass(frozen=True)
class DomainQuery:
    """
    A fully specified domain query.

    Attributes:

        primary_entity: Root entity of the query
        primary_filter: Mandatory filter on the primary entity
        related: Related entity requests in submission order
        selected_entities: Entities to keep in the result (empty keeps all)
        selected_fields: Entity name -> fields to keep for that entity
        max_rows: Overall cap on joined rows before de-duplication
    """

    primary_entity: Optional[str] = None
    primary_filter: Optional[EntityFilter] = None
    related: Tuple[RelatedEntityRequest, ...] = ()
    selected_entities: Tuple[str, ...] = ()
    selected_fields: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    max_rows: Optional[int] = None

    def from_entity(self, entity_name: str) -> "DomainQuery":
        """
        Set the primary entity.

        Args:

            entity_name: Entity name as declared in the schema document (case-insensitive)

        Returns:

            New query rooted at `entity_name`
        """
        return replace(self, primary_entity=entity_name)

    def where(self, filter: FilterDocument) -> "DomainQuery":
        """
        Set the filter on the primary entity.

        Args:

            filter: MongoDB-style filter, e.g. ``{"email": "a@x.com"}`` or ``{"created_at": {"$gte": "2025-01-01"}}``

        Returns:

            New query with the primary filter replaced

        Raises:

            QueryValidationError: If `filter` is not an object
        """
        return replace(self, primary_filter=EntityFilter.parse(filter))

    def with_related(self, entity_name: str, filter: FilterDocument = None, parent: Optional[str] = None) -> "DomainQuery":
        """
        Join a related entity.

        Use ``$limit`` inside the filter to keep only the top N records per
        parent, ranked by the entity's default ordering.

        Args:

            entity_name: Related entity name
            filter: Optional MongoDB-style filter, e.g. ``{"status": "active", "$limit": 5}``
            parent: Entity to join against. Defaults to the primary entity.

        Returns:

            New query with the request appended

        Example:

            >>> query = query.with_related("Product", {"sku": {"$in": ["CS-ENT", "CS-PRO"]}}, parent="Subscription")
        """
        request = RelatedEntityRequest(entity_name=entity_name, filter=EntityFilter.parse(filter), parent_entity=parent)
        return replace(self, related=self.related + (request,))

    def select(self, *entity_names: str) -> "DomainQuery":
        """
        Keep only these entities (and their counts) in the result.

        Replaces any earlier selection. Without a selection every queried entity is returned.
        """
        return replace(self, selected_entities=tuple(entity_names))

    def select_fields(self, entity_name: str, *fields: str) -> "DomainQuery":
        """
        Keep only these fields in each record of `entity_name`.

        Calling it again for the same entity adds to its field list.
        """
        selected = dict(self.selected_fields)
        key = entity_name.lower()
        selected[key] = selected.get(key, ()) + tuple(f for f in fields if f not in selected.get(key, ()))
        return replace(self, selected_fields=selected)

    def limit(self, max_rows: Optional[int]) -> "DomainQuery":
        """
        Cap the number of joined rows returned by the statement.

        The cap applies before de-duplication and is bounded by the schema's
        ``maxLimit``. A missing or non-positive value uses ``defaultLimit``.
        For per-entity caps use ``$limit`` in the related entity's filter.
        """
        return replace(self, max_rows=max_rows)

"""
Plans a `DomainQuery` into one parameterized LEFT JOIN statement.

The statement selects every field of every participating entity, aliased as
``<entitykey>__<field>`` so the materializer can split each flat row back
into per-entity records:

    SELECT t0.customer_id AS "customerprofile__customer_id", ...,
           t1.id AS "subscription__id", ...
    FROM "CustomerProfile" t0
    LEFT JOIN (SELECT * FROM (SELECT *, ROW_NUMBER() OVER (PARTITION BY customer_id ORDER BY start_date DESC) AS _rn
                              FROM "Subscription" WHERE status = :p0) ranked
               WHERE _rn <= 1) t1 ON t1.customer_id = t0.customer_id
    LEFT JOIN "Product" t2 ON t2.subscription_id = t1.id
    WHERE t0.email = :p1
    ORDER BY t0.customer_id, t1.id, t2.id
    LIMIT 100

Related-entity conditions never go in WHERE, which would turn the outer join
into an inner join and drop primary records without matches. Dialect
differences (row cap, ranking subquery, identifier quoting) come from the
database provider.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy.types import TypeEngine

from customer_query.coercion import coerce_value, result_type_for, sql_type_for
from customer_query.errors import PlanningWarning, QueryValidationError
from customer_query.filters import EntityFilter, FilterCondition
from customer_query.query.builder import DomainQuery
from customer_query.schema import EntitySchema, SchemaRegistry
from customer_query.storage.interfaces import BoundStatement, DatabaseProviderInterface

logger = logging.getLogger(__name__)

COLUMN_SEPARATOR = "__"


def column_alias(schema: EntitySchema, field_name: str) -> str:
    """Result column name of `field_name` on `schema` in the planned statement."""
    return f"{schema.entity_key}{COLUMN_SEPARATOR}{field_name}"


def resolve_join_keys(parent: EntitySchema, child: EntitySchema) -> Tuple[str, str]:
    """
    Work out which fields join `child` to `parent`.

    Either side may declare the relationship:

    1. The parent declares a relationship to the child: its foreignKey (on the
       parent) matches its localKey (on the child, defaulting to the same name).
    2. The child declares a relationship to the parent: the parent's
       identifier matches the child's foreignKey.
    3. Otherwise the two identifiers are matched.

    Returns:

        Tuple of (parent field, child field)
    """
    relationship = parent.relationship_to(child.name)
    if relationship is not None:
        return relationship.foreign_key, relationship.local_key or relationship.foreign_key

    relationship = child.relationship_to(parent.name)
    if relationship is not None:
        return parent.identifier_field, relationship.foreign_key

    return parent.identifier_field, child.identifier_field


@dataclass(frozen=True)
class JoinStep:
    """
    One related entity in join order.

    Attributes:

        schema: The related entity
        parent: The entity it is joined against
        filter: Its filter, if any
    """

    schema: EntitySchema
    parent: EntitySchema
    filter: Optional[EntityFilter] = None


@dataclass(frozen=True)
class QueryPlan:
    """
    Immutable result of planning one query.

    Attributes:

        statement: The parameterized statement to execute
        primary: Schema of the primary entity
        related: Related entity schemas in join order
        row_limit: Effective overall row cap
        warnings: Non-fatal planning diagnostics
        rejected_fields: ``Entity.field`` names dropped because they are not filterable
        selected_entities: Entity keys to keep in the result (empty keeps all)
        selected_fields: Entity key -> lower-cased field names to keep
    """

    statement: BoundStatement
    primary: EntitySchema
    related: Tuple[EntitySchema, ...]
    row_limit: int
    warnings: Tuple[PlanningWarning, ...] = ()
    rejected_fields: Tuple[str, ...] = ()
    selected_entities: Tuple[str, ...] = ()
    selected_fields: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @property
    def joined_entities(self) -> List[str]:
        return [schema.name for schema in self.related]


class _ParameterSet:
    """Accumulates named, typed bind parameters (p0, p1, ...)."""

    def __init__(self):
        self.values: Dict[str, Any] = {}
        self.types: Dict[str, TypeEngine] = {}
        self.expanding: Set[str] = set()

    def add(self, value: Any, sql_type: TypeEngine, expanding: bool = False) -> str:
        name = f"p{len(self.values)}"
        self.values[name] = value
        self.types[name] = sql_type
        if expanding:
            self.expanding.add(name)
        return name


class QueryPlanner:
    """
    Turns `DomainQuery` objects into `QueryPlan` objects.

    Holds only the read-only registry and provider, so one planner may serve
    concurrent queries.

    Example:

        >>> planner = QueryPlanner(registry, provider)
        >>> plan = planner.plan(DomainQuery().from_entity("CustomerProfile").where({"customer_id": "C001"}))
        >>> rows = provider.execute(plan.statement)
    """

    def __init__(self, registry: SchemaRegistry, provider: DatabaseProviderInterface):
        self.registry = registry
        self.provider = provider

    def plan(self, query: DomainQuery) -> QueryPlan:
        """
        Plan a query.

        Raises:

            QueryValidationError: Missing primary entity or filter, unknown or duplicate entity, or a parent that is never joined
            ConversionError: A filter value cannot be coerced to its field's type
        """
        if not query.primary_entity:
            raise QueryValidationError("Primary entity not specified. Call from_entity() first.")
        if query.primary_filter is None or query.primary_filter.is_empty:
            raise QueryValidationError("Filter not specified. Call where() first.")

        primary = self.registry.require(query.primary_entity)
        steps, warnings = self._order_joins(primary, query.related)

        params = _ParameterSet()
        rejected: List[str] = []
        aliases = {primary.entity_key: "t0"}
        for index, step in enumerate(steps, start=1):
            aliases[step.schema.entity_key] = f"t{index}"

        columns = self._select_columns(primary, "t0")
        for step in steps:
            columns.extend(self._select_columns(step.schema, aliases[step.schema.entity_key]))

        sql = f"SELECT {', '.join(columns)} FROM {self.provider.quote_identifier(primary.table_name)} t0"
        for step in steps:
            sql += self._join_clause(step, aliases, params, rejected)

        primary_conditions = self._conditions(primary, query.primary_filter, rejected)
        if primary_conditions:
            where = [self._condition_sql(condition, primary, self._column("t0", condition.field), params) for condition in primary_conditions]
            sql += f" WHERE {' AND '.join(where)}"

        order_by = [self._column("t0", primary.identifier_field)]
        order_by.extend(self._column(aliases[step.schema.entity_key], step.schema.identifier_field) for step in steps)
        sql += f" ORDER BY {', '.join(order_by)}"

        row_limit = self.effective_row_limit(query.max_rows)
        sql = self.provider.cap_rows(sql, row_limit)

        for warning in warnings:
            logger.warning("Planning warning: %s", warning)
        if rejected:
            logger.warning("Ignoring filter fields that are not filterable: %s", ", ".join(rejected))

        return QueryPlan(
            statement=BoundStatement(
                sql=sql,
                parameters=params.values,
                bind_types=params.types,
                expanding=frozenset(params.expanding),
                result_types=self._result_types([primary] + [step.schema for step in steps]),
            ),
            primary=primary,
            related=tuple(step.schema for step in steps),
            row_limit=row_limit,
            warnings=tuple(warnings),
            rejected_fields=tuple(rejected),
            selected_entities=tuple(name.lower() for name in query.selected_entities),
            selected_fields={key.lower(): tuple(f.lower() for f in fields) for key, fields in query.selected_fields.items()},
        )

    def effective_row_limit(self, requested: Optional[int]) -> int:
        """Overall row cap: the requested value (or defaultLimit when missing or non-positive), bounded by maxLimit."""
        base = requested if requested is not None and requested > 0 else self.registry.default_limit
        return min(base, self.registry.max_limit)

    def effective_entity_limit(self, entity_filter: Optional[EntityFilter]) -> Optional[int]:
        """Per-parent cap from ``$limit`` bounded by maxLimit, or None when the entity is uncapped."""
        if entity_filter is None or entity_filter.limit is None or entity_filter.limit <= 0:
            return None
        return min(entity_filter.limit, self.registry.max_limit)

    def _order_joins(self, primary: EntitySchema, requests) -> Tuple[List[JoinStep], List[PlanningWarning]]:
        """Resolve schemas and order related requests so every parent is joined before its children."""
        resolved_requests = []
        seen = {primary.entity_key}
        for request in requests:
            schema = self.registry.require(request.entity_name)
            if schema.entity_key in seen:
                raise QueryValidationError(f"Entity {schema.name} is requested more than once")
            seen.add(schema.entity_key)
            parent = self.registry.require(request.parent_entity) if request.parent_entity else primary
            resolved_requests.append((schema, parent, request.filter))

        for schema, parent, _ in resolved_requests:
            if parent.entity_key not in seen:
                raise QueryValidationError(f"Parent entity {parent.name} of {schema.name} is neither the primary entity nor a requested related entity")

        steps: List[JoinStep] = []
        warnings: List[PlanningWarning] = []
        joined = {primary.entity_key}
        pending = resolved_requests
        while pending:
            layer = [r for r in pending if r[1].entity_key in joined]
            if not layer:
                names = [schema.name for schema, _, _ in pending]
                warnings.append(
                    PlanningWarning(
                        f"Could not order joins for {', '.join(names)} (circular parents); entities whose parent is not yet joined are joined to {primary.name}",
                        entities=names,
                    )
                )
                for schema, parent, entity_filter in pending:
                    if parent.entity_key not in joined:
                        parent = primary
                    steps.append(JoinStep(schema=schema, parent=parent, filter=entity_filter))
                    joined.add(schema.entity_key)
                break
            for schema, parent, entity_filter in layer:
                steps.append(JoinStep(schema=schema, parent=parent, filter=entity_filter))
                joined.add(schema.entity_key)
            pending = [r for r in pending if r[0].entity_key not in joined]

        return steps, warnings

    def _select_columns(self, schema: EntitySchema, alias: str) -> List[str]:
        return [f"{self._column(alias, name)} AS {self.provider.quote_identifier(column_alias(schema, name), force=True)}" for name in schema.fields]

    def _result_types(self, schemas: List[EntitySchema]) -> Dict[str, TypeEngine]:
        return {column_alias(schema, name): result_type_for(schema.field_type(name)) for schema in schemas for name in schema.fields}

    def _column(self, alias: Optional[str], field_name: str) -> str:
        column = self.provider.quote_identifier(field_name)
        return f"{alias}.{column}" if alias else column

    def _join_clause(self, step: JoinStep, aliases: Dict[str, str], params: _ParameterSet, rejected: List[str]) -> str:
        schema = step.schema
        alias = aliases[schema.entity_key]
        parent_alias = aliases[step.parent.entity_key]
        parent_field, child_field = resolve_join_keys(step.parent, schema)
        on = f"{self._column(alias, child_field)} = {self._column(parent_alias, parent_field)}"

        conditions = self._conditions(schema, step.filter, rejected)
        cap = self.effective_entity_limit(step.filter)

        if cap is not None:
            where = " AND ".join(self._condition_sql(c, schema, self._column(None, c.field), params) for c in conditions)
            ranked = self.provider.ranked_subquery(schema.table_name, child_field, schema.default_order_by, where)
            return f" LEFT JOIN (SELECT * FROM ({ranked}) ranked WHERE _rn <= {cap}) {alias} ON {on}"

        for condition in conditions:
            on += f" AND {self._condition_sql(condition, schema, self._column(alias, condition.field), params)}"
        return f" LEFT JOIN {self.provider.quote_identifier(schema.table_name)} {alias} ON {on}"

    def _conditions(self, schema: EntitySchema, entity_filter: Optional[EntityFilter], rejected: List[str]) -> List[FilterCondition]:
        if entity_filter is None:
            return []
        conditions, rejected_fields = entity_filter.to_conditions(schema)
        rejected.extend(f"{schema.name}.{name}" for name in rejected_fields)
        return conditions

    def _condition_sql(self, condition: FilterCondition, schema: EntitySchema, column: str, params: _ParameterSet) -> str:
        field_type = schema.field_type(condition.field)
        sql_type = sql_type_for(field_type)

        if condition.is_array:
            values = [coerce_value(value, field_type, condition.field) for value in condition.value]
            name = params.add(values, sql_type, expanding=True)
            return f"{column} {condition.operator} :{name}"

        value = coerce_value(condition.value, field_type, condition.field)
        if value is None and condition.operator == "=":
            return f"{column} IS NULL"
        if value is None and condition.operator == "!=":
            return f"{column} IS NOT NULL"
        name = params.add(value, sql_type)
        return f"{column} {condition.operator} :{name}"

"""
Rebuilds per-entity records from the flat rows of a planned statement.

Every row carries all participating entities' columns, prefixed with the
entity key. The primary record is taken from the first row; related records
are de-duplicated by identifier in row order, and a slice that is entirely
null (the outer join found nothing for that branch) is skipped.
"""

from typing import Any, Dict, Iterable, List, Optional

from customer_query.query.planner import QueryPlan, column_alias
from customer_query.query.results import DomainQueryResult
from customer_query.schema import EntitySchema
from customer_query.storage.interfaces import Row

Record = Dict[str, Any]


def extract_record(row: Row, schema: EntitySchema) -> Record:
    """Pull one entity's fields out of a joined row, dropping the column prefix."""
    return {name: row.get(column_alias(schema, name)) for name in schema.fields}


class ResultMaterializer:
    """
    Accumulates rows for one plan and produces the result document.

    Example:

        >>> materializer = ResultMaterializer(plan)
        >>> materializer.add_rows(rows)
        >>> result = materializer.to_result()
    """

    def __init__(self, plan: QueryPlan):
        self.plan = plan
        self.primary_record: Optional[Record] = None
        self.related: Dict[str, List[Record]] = {schema.entity_key: [] for schema in plan.related}
        self._seen: Dict[str, set] = {schema.entity_key: set() for schema in plan.related}

    def add_rows(self, rows: Iterable[Row]) -> None:
        for row in rows:
            self.add_row(row)

    def add_row(self, row: Row) -> None:
        if self.primary_record is None:
            self.primary_record = extract_record(row, self.plan.primary)

        for schema in self.plan.related:
            record = extract_record(row, schema)
            if all(value is None for value in record.values()):
                continue
            identifier = record[schema.identifier_field]
            seen = self._seen[schema.entity_key]
            if identifier is None or identifier in seen:
                continue
            seen.add(identifier)
            self.related[schema.entity_key].append(record)

    def to_result(self) -> DomainQueryResult:
        primary_key = self.plan.primary.entity_key
        data: Dict[str, Any] = {primary_key: self.primary_record}
        counts: Dict[str, int] = {primary_key: 0 if self.primary_record is None else 1}
        for key, records in self.related.items():
            data[key] = records
            counts[key] = len(records)

        self._apply_projection(data, counts)

        warnings = [str(warning) for warning in self.plan.warnings]
        warnings.extend(f"Filter field '{name}' is not filterable and was ignored" for name in self.plan.rejected_fields)
        return DomainQueryResult(success=True, data=data, counts=counts, warnings=warnings)

    def _apply_projection(self, data: Dict[str, Any], counts: Dict[str, int]) -> None:
        if self.plan.selected_entities:
            for key in list(data):
                if key not in self.plan.selected_entities:
                    del data[key]
                    del counts[key]

        for key, fields in self.plan.selected_fields.items():
            if key not in data or not fields:
                continue
            value = data[key]
            if isinstance(value, list):
                data[key] = [_select_fields(record, fields) for record in value]
            elif value is not None:
                data[key] = _select_fields(value, fields)


def _select_fields(record: Record, fields) -> Record:
    return {name: value for name, value in record.items() if name.lower() in fields}


def materialize(plan: QueryPlan, rows: Iterable[Row]) -> DomainQueryResult:
    """Build the result document for `plan` from its statement's rows."""
    materializer = ResultMaterializer(plan)
    materializer.add_rows(rows)
    return materializer.to_result()

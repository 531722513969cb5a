"""
Error taxonomy for domain queries.

Every exception raised while planning or executing a query derives from
`DomainQueryError`. The query service catches these and converts them into a
failed `DomainQueryResult`, so callers check `result.success` rather than
relying on an exception crossing the service boundary.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


class DomainQueryError(Exception):
    """Base class for all query failures."""


class QueryValidationError(DomainQueryError):
    """The request is malformed: missing primary entity or filter, unknown entity, bad parent."""


class ConversionError(DomainQueryError):
    """A filter value could not be coerced to its field's declared type."""

    def __init__(self, field_name: str, field_type: str, value: Any, reason: Optional[str] = None):
        self.field_name = field_name
        self.field_type = field_type
        self.value = value
        message = f"Invalid value for field '{field_name}' (type: {field_type}): {value!r}"
        if reason:
            message += f". {reason}"
        super().__init__(message)


class QueryExecutionError(DomainQueryError):
    """The database rejected or failed the planned statement."""

    def __init__(self, message: str, primary_entity: Optional[str] = None, joined_entities: Optional[List[str]] = None, statement_shape: Optional[str] = None):
        self.primary_entity = primary_entity
        self.joined_entities = list(joined_entities or [])
        self.statement_shape = statement_shape
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.primary_entity:
            joins = ", ".join(self.joined_entities) or "none"
            message = f"Query on {self.primary_entity} (joins: {joins}) failed: {message}"
        return message


class QueryCancelledError(DomainQueryError):
    """The caller raised the cancellation signal before the statement completed."""


@dataclass(frozen=True)
class PlanningWarning:
    """
    Non-fatal planning diagnostic recorded on a plan.

    Attributes:

        message: Human readable description
        entities: Entity names the warning concerns
    """

    message: str
    entities: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return self.message

from .errors import ConversionError, DomainQueryError, PlanningWarning, QueryCancelledError, QueryExecutionError, QueryValidationError
from .filters import EntityFilter, FilterCondition
from .query import DomainQuery, DomainQueryResult, DomainQueryService, QueryPlanner
from .schema import EntitySchema, SchemaRegistry, SemanticType

__all__ = [
    "ConversionError",
    "DomainQuery",
    "DomainQueryError",
    "DomainQueryResult",
    "DomainQueryService",
    "EntityFilter",
    "EntitySchema",
    "FilterCondition",
    "PlanningWarning",
    "QueryCancelledError",
    "QueryExecutionError",
    "QueryPlanner",
    "QueryValidationError",
    "SchemaRegistry",
    "SemanticType",
]

"""
MongoDB-style entity filters.

A filter document maps field names to either a plain value (equality) or an
operator object, plus the reserved ``$limit`` key that caps how many records
of that entity are returned per parent:

    {"status": "active"}
    {"amount": {"$gte": 100}}
    {"start_date": {"$gte": "2025-01-01", "$lte": "2025-12-31"}}
    {"status": {"$in": ["pending", "shipped"]}, "$limit": 5}

Parsing only classifies syntax and checks fields against the entity's
allowlist. Values are coerced to the field's declared type later, when the
planner binds parameters.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import QueryValidationError
from .schema import EntitySchema

LIMIT_KEY = "$limit"

# A filter value is a scalar or a flat array of scalars
ScalarValue = Union[str, int, float, bool, None]
FilterValue = Union[ScalarValue, List[ScalarValue]]

# operator key -> (SQL comparator, array semantics)
OPERATORS: Dict[str, Tuple[str, bool]] = {
    "$eq": ("=", False),
    "$ne": ("!=", False),
    "$gt": (">", False),
    "$gte": (">=", False),
    "$lt": ("<", False),
    "$lte": ("<=", False),
    "$in": ("IN", True),
    "$nin": ("NOT IN", True),
    "$like": ("LIKE", False),
    # There is no portable regex comparator; approximate with LIKE
    "$regex": ("LIKE", False),
}


@dataclass(frozen=True)
class FilterCondition:
    """A parsed (field, operator, value) condition ready for SQL generation."""

    field: str
    operator: str
    value: FilterValue
    is_array: bool = False


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def check_filter_value(field_name: str, value: Any) -> FilterValue:
    """Validate that a raw value is a scalar or an array of scalars."""
    if _is_scalar(value):
        return value
    if isinstance(value, (list, tuple)):
        for item in value:
            if not _is_scalar(item):
                raise QueryValidationError(f"Filter field '{field_name}': arrays may only contain scalar values, got {item!r}")
        return list(value)
    raise QueryValidationError(f"Filter field '{field_name}': unsupported value {value!r}")


class EntityFilter(BaseModel):
    """
    Filter for a single entity.

    Attributes:

        conditions: Raw field -> value or field -> {operator: value} mapping, in document order
        limit: Optional per-entity result cap taken from ``$limit``
    """

    model_config = ConfigDict(frozen=True)

    conditions: Dict[str, Any] = Field(default_factory=dict)
    limit: Optional[int] = None

    @staticmethod
    def split_limit(document: Mapping[str, Any]) -> Tuple[Dict[str, Any], Optional[int]]:
        """
        Pull the reserved ``$limit`` key out of a raw filter document.

        Every other key, including ones that happen to be named like this
        model's fields, is kept as a field condition.

        Returns:

            Tuple of (field conditions, limit or None)
        """
        conditions: Dict[str, Any] = {}
        limit: Optional[int] = None
        for key, value in document.items():
            if str(key).lower() == LIMIT_KEY:
                # Non-integer caps are ignored rather than rejected
                if isinstance(value, int) and not isinstance(value, bool):
                    limit = value
                continue
            conditions[str(key)] = value
        return conditions, limit

    @classmethod
    def parse(cls, document: Union["EntityFilter", Mapping[str, Any], None]) -> Optional["EntityFilter"]:
        """Coerce a filter document (or an existing filter) into an `EntityFilter`."""
        if document is None or isinstance(document, EntityFilter):
            return document
        if not isinstance(document, Mapping):
            raise QueryValidationError(f"Filter must be an object, got {type(document).__name__}")
        conditions, limit = cls.split_limit(document)
        try:
            return cls(conditions=conditions, limit=limit)
        except ValidationError as e:
            raise QueryValidationError(f"Invalid filter: {e}") from e

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def to_conditions(self, schema: EntitySchema) -> Tuple[List[FilterCondition], List[str]]:
        """
        Parse conditions against an entity's allowlist.

        Fields outside the allowlist are skipped, not rejected. Unrecognized
        operator keys inside an operator object are ignored.

        Args:

            schema: Schema of the entity this filter belongs to

        Returns:

            Tuple of (conditions in document order, rejected field names)
        """
        conditions: List[FilterCondition] = []
        rejected: List[str] = []

        for requested, value in self.conditions.items():
            field_name = schema.allowed_filter_field(requested)
            if field_name is None:
                rejected.append(requested)
                continue

            if isinstance(value, Mapping):
                for op_key, op_value in value.items():
                    operator = OPERATORS.get(str(op_key).lower())
                    if operator is None:
                        continue
                    comparator, is_array = operator
                    checked = check_filter_value(field_name, op_value)
                    if is_array and not isinstance(checked, list):
                        checked = [checked]
                    elif not is_array and isinstance(checked, list):
                        raise QueryValidationError(f"Filter field '{field_name}': operator {op_key} does not accept an array")
                    conditions.append(FilterCondition(field=field_name, operator=comparator, value=checked, is_array=is_array))
            else:
                checked = check_filter_value(field_name, value)
                if isinstance(checked, list):
                    raise QueryValidationError(f"Filter field '{field_name}': use $in to match against an array")
                conditions.append(FilterCondition(field=field_name, operator="=", value=checked))

        return conditions, rejected

"""
Type-directed coercion of filter values.

Filter documents arrive as loosely typed JSON. Before a value is bound as a
statement parameter it is converted to the semantic type declared for its
field, and bound with the matching SQLAlchemy type so each driver receives
the representation it stores.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from sqlalchemy.types import Boolean, DateTime, Integer, Numeric, String, TypeEngine

from .errors import ConversionError
from .schema import SemanticType

SQL_TYPES: Dict[SemanticType, TypeEngine] = {
    SemanticType.STRING: String(),
    SemanticType.INTEGER: Integer(),
    SemanticType.DECIMAL: Numeric(asdecimal=True),
    SemanticType.BOOLEAN: Boolean(),
    SemanticType.DATETIME: DateTime(),
}

# Fetched decimals become floats so result documents carry JSON numbers on every dialect
RESULT_TYPES: Dict[SemanticType, TypeEngine] = {
    SemanticType.STRING: String(),
    SemanticType.INTEGER: Integer(),
    SemanticType.DECIMAL: Numeric(asdecimal=False),
    SemanticType.BOOLEAN: Boolean(),
    SemanticType.DATETIME: DateTime(),
}

# Widest integer every supported driver binds
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}


def sql_type_for(semantic_type: SemanticType) -> TypeEngine:
    return SQL_TYPES[semantic_type]


def result_type_for(semantic_type: SemanticType) -> TypeEngine:
    return RESULT_TYPES[semantic_type]


def _to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _check_integer_range(value: int) -> int:
    if not INTEGER_MIN <= value <= INTEGER_MAX:
        raise ValueError("Value is outside the 64-bit integer range")
    return value


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _check_integer_range(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("Expected a whole number")
        return _check_integer_range(int(value))
    if isinstance(value, str):
        return _check_integer_range(int(value.strip()))
    raise ValueError(f"Expected integer value, got {type(value).__name__}")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps the shortest round-tripping representation (0.1, not 0.1000000000000000055...)
        return Decimal(str(value))
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError("Expected a decimal number") from None
        if not result.is_finite():
            raise ValueError("Expected a finite decimal number")
        return result
    raise ValueError(f"Expected decimal value, got {type(value).__name__}")


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError("Expected true or false")
    raise ValueError(f"Expected boolean value, got {type(value).__name__}")


def _normalize_datetime(value: datetime) -> datetime:
    # Stored timestamps are naive UTC
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, bool):
        raise ValueError("Expected datetime value, got bool")
    if isinstance(value, datetime):
        return _normalize_datetime(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _normalize_datetime(datetime.fromisoformat(text))
        except ValueError:
            raise ValueError(f"Cannot parse '{value}' as datetime. Use ISO format: yyyy-MM-dd or yyyy-MM-ddTHH:mm:ss") from None
    raise ValueError(f"Expected datetime value, got {type(value).__name__}")


_CONVERTERS = {
    SemanticType.STRING: _to_string,
    SemanticType.INTEGER: _to_integer,
    SemanticType.DECIMAL: _to_decimal,
    SemanticType.BOOLEAN: _to_boolean,
    SemanticType.DATETIME: _to_datetime,
}


def coerce_value(value: Any, semantic_type: SemanticType, field_name: str) -> Any:
    """
    Convert a filter value to the field's declared type.

    Args:

        value: Scalar from the filter document (None passes through)
        semantic_type: Declared type of the field
        field_name: Field name, used in the error message

    Returns:

        The converted value

    Raises:

        ConversionError: If the value cannot be represented in the declared type
    """
    if value is None:
        return None
    try:
        return _CONVERTERS[semantic_type](value)
    except (ValueError, TypeError, OverflowError, OSError) as e:
        raise ConversionError(field_name, semantic_type.value, value, str(e)) from e

"""
Storage capability interface consumed by the query planner.

The planner never emits dialect-specific syntax itself. Everything that
differs between databases (capping the total number of joined rows, the shape
of a ranking-window subquery, how an in-flight statement is interrupted) sits
behind `DatabaseProviderInterface`, with one implementation per backend:

- SQLite for testing/development
- PostgreSQL for production
- SQL Server
"""

import threading
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Union

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.selectable import TextualSelect
from sqlalchemy.types import TypeEngine

Row = Dict[str, Any]


@dataclass(frozen=True)
class BoundStatement:
    """
    A parameterized SQL statement with its bound values.

    Attributes:

        sql: Statement text using ``:name`` placeholders
        parameters: Placeholder name -> coerced value
        bind_types: Placeholder name -> SQLAlchemy type used to bind the value
        expanding: Placeholders bound to a list (``IN :p0``)
        result_types: Result column name -> SQLAlchemy type used to convert fetched values
    """

    sql: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    bind_types: Dict[str, TypeEngine] = field(default_factory=dict)
    expanding: FrozenSet[str] = frozenset()
    result_types: Dict[str, TypeEngine] = field(default_factory=dict)

    def to_text(self) -> Union[TextClause, TextualSelect]:
        """Build the SQLAlchemy text construct with typed bind parameters and result columns."""
        binds = [bindparam(name, type_=self.bind_types.get(name), expanding=name in self.expanding) for name in self.parameters]
        clause = text(self.sql)
        if binds:
            clause = clause.bindparams(*binds)
        if self.result_types:
            return clause.columns(**self.result_types)
        return clause


class DatabaseProviderInterface(ABC):
    """Abstract interface for a database the query planner can run against."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short backend name (SQLite, PostgreSQL, SqlServer)."""
        pass

    @abstractmethod
    def open_connection(self) -> AbstractContextManager[Connection]:
        """Acquire a connection for the duration of one query, released on exit."""
        pass

    @abstractmethod
    def execute(self, statement: BoundStatement, cancel_event: Optional[threading.Event] = None) -> List[Row]:
        """
        Run one statement and return its rows as column-name keyed mappings.

        Raises:

            QueryCancelledError: If `cancel_event` is set before the statement completes
            QueryExecutionError: If the database fails the statement
        """
        pass

    @abstractmethod
    def quote_identifier(self, name: str, force: bool = False) -> str:
        """Quote a table, column or alias name for this dialect, where it requires quoting or always when `force` is set."""
        pass

    @abstractmethod
    def cap_rows(self, sql: str, limit: int) -> str:
        """Return `sql` restricted to at most `limit` rows. `sql` always ends in an ORDER BY."""
        pass

    @abstractmethod
    def ranked_subquery(self, table_name: str, partition_key: str, order_by: Optional[str], where: str = "") -> str:
        """
        Select every column of `table_name` plus an ``_rn`` row number.

        Rows are numbered within partitions of `partition_key`, ordered by
        `order_by` (database-default order when None), after `where` (a
        predicate without the WHERE keyword) has been applied.
        """
        pass

    @abstractmethod
    def interrupt(self, dbapi_connection: Any) -> None:
        """Abort the statement currently running on a raw DBAPI connection."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close connections and clean up resources."""
        pass

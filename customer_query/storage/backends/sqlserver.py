"""
SQL Server database provider.

Connects through pyodbc (``mssql+pyodbc://...``), installed with the
``mssql`` extra.
"""

from typing import Any, Optional, Union

from sqlalchemy.engine import Engine

from customer_query.storage.backends.base import SQLAlchemyDatabaseProvider


class SqlServerDatabaseProvider(SQLAlchemyDatabaseProvider):
    """SQL Server implementation of the database capability."""

    def __init__(self, url_or_engine: Union[str, Engine]):
        if isinstance(url_or_engine, Engine):
            super().__init__(url_or_engine)
        else:
            super().__init__(url_or_engine, pool_pre_ping=True)

    @property
    def provider_name(self) -> str:
        return "SqlServer"

    def cap_rows(self, sql: str, limit: int) -> str:
        # OFFSET/FETCH needs the trailing ORDER BY every planned statement has
        return f"{sql} OFFSET 0 ROWS FETCH NEXT {int(limit)} ROWS ONLY"

    def ranked_subquery(self, table_name: str, partition_key: str, order_by: Optional[str], where: str = "") -> str:
        # ROW_NUMBER() requires an ORDER BY in its OVER clause
        return super().ranked_subquery(table_name, partition_key, order_by or "(SELECT NULL)", where)

    def interrupt(self, dbapi_connection: Any) -> None:
        cancel = getattr(dbapi_connection, "cancel", None)
        if cancel is None:
            raise NotImplementedError("The SQL Server driver does not support cancelling a running statement")
        cancel()

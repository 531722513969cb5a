"""
SQLite database provider.

Used for testing and local development. Window functions (``ROW_NUMBER()``)
require SQLite 3.25 or newer.
"""

from typing import Any, Union

from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from customer_query.storage.backends.base import SQLAlchemyDatabaseProvider


def _is_memory_url(url: str) -> bool:
    database = make_url(url).database
    return database in (None, "", ":memory:")


class SQLiteDatabaseProvider(SQLAlchemyDatabaseProvider):
    """
    SQLite implementation of the database capability.

    Example:

        >>> provider = SQLiteDatabaseProvider("sqlite:///customer_data.db")
        >>> provider = SQLiteDatabaseProvider("sqlite://")  # in-memory, single shared connection
    """

    def __init__(self, url_or_engine: Union[str, Engine] = "sqlite://"):
        if isinstance(url_or_engine, Engine):
            super().__init__(url_or_engine)
            return
        engine_kwargs = {"connect_args": {"check_same_thread": False}}
        if _is_memory_url(url_or_engine):
            # Every connection must see the same in-memory database
            engine_kwargs["poolclass"] = StaticPool
        super().__init__(url_or_engine, **engine_kwargs)

    @property
    def provider_name(self) -> str:
        return "SQLite"

    def interrupt(self, dbapi_connection: Any) -> None:
        dbapi_connection.interrupt()

"""
Shared SQLAlchemy plumbing for the concrete database providers.

Subclasses only supply what differs per dialect; connection handling,
execution, cancellation, error wrapping and the ANSI forms of the row cap
(``LIMIT n``) and ranking subquery (``ROW_NUMBER() OVER (...)``) live here.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from customer_query.errors import QueryCancelledError, QueryExecutionError
from customer_query.storage.interfaces import BoundStatement, DatabaseProviderInterface, Row

logger = logging.getLogger(__name__)

CANCEL_POLL_SECONDS = 0.05


class _CancellationWatcher:
    """Background thread that interrupts the running statement once the cancel event is set."""

    def __init__(self, cancel_event: threading.Event, on_cancel: Callable[[], None]):
        self._cancel_event = cancel_event
        self._on_cancel = on_cancel
        self._done = threading.Event()
        self._thread = threading.Thread(target=self._run, name="query-cancel-watcher", daemon=True)

    def __enter__(self) -> "_CancellationWatcher":
        self._thread.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._done.set()
        self._thread.join()

    def _run(self) -> None:
        while not self._done.is_set():
            if self._cancel_event.wait(CANCEL_POLL_SECONDS):
                if self._done.is_set():
                    return
                try:
                    self._on_cancel()
                except Exception:
                    # Nothing can propagate out of this thread; the caller still sees the cancellation
                    logger.warning("Failed to interrupt running statement", exc_info=True)
                return


class SQLAlchemyDatabaseProvider(DatabaseProviderInterface):
    """Database provider backed by a SQLAlchemy engine."""

    def __init__(self, url_or_engine: Union[str, Engine], **engine_kwargs: Any):
        if isinstance(url_or_engine, Engine):
            self.engine = url_or_engine
        else:
            self.engine = create_engine(url_or_engine, **engine_kwargs)

    @contextmanager
    def open_connection(self) -> Iterator[Connection]:
        with self.engine.connect() as conn:
            yield conn

    def execute(self, statement: BoundStatement, cancel_event: Optional[threading.Event] = None) -> List[Row]:
        if cancel_event is not None and cancel_event.is_set():
            raise QueryCancelledError("Query cancelled before execution")

        logger.debug("Executing statement on %s: %s", self.provider_name, statement.sql)
        with self.open_connection() as conn:
            try:
                if cancel_event is None:
                    return self._fetch(conn, statement)

                dbapi_connection = conn.connection.dbapi_connection
                with _CancellationWatcher(cancel_event, lambda: self.interrupt(dbapi_connection)):
                    rows = self._fetch(conn, statement)
            except SQLAlchemyError as e:
                if cancel_event is not None and cancel_event.is_set():
                    raise QueryCancelledError("Query cancelled during execution") from e
                cause = getattr(e, "orig", None) or e
                raise QueryExecutionError(str(cause), statement_shape=statement.sql) from e
            except (OverflowError, ValueError, TypeError) as e:
                # Raised by the driver while binding parameters, outside SQLAlchemy's exception wrapping
                raise QueryExecutionError(f"{type(e).__name__}: {e}", statement_shape=statement.sql) from e

            if cancel_event.is_set():
                raise QueryCancelledError("Query cancelled during execution")
            return rows

    def quote_identifier(self, name: str, force: bool = False) -> str:
        preparer = self.engine.dialect.identifier_preparer
        if force:
            return preparer.quote_identifier(name)
        return preparer.quote(name)

    def cap_rows(self, sql: str, limit: int) -> str:
        return f"{sql} LIMIT {int(limit)}"

    def ranked_subquery(self, table_name: str, partition_key: str, order_by: Optional[str], where: str = "") -> str:
        over = f"PARTITION BY {self.quote_identifier(partition_key)}"
        if order_by:
            over += f" ORDER BY {order_by}"
        sql = f"SELECT *, ROW_NUMBER() OVER ({over}) AS _rn FROM {self.quote_identifier(table_name)}"
        if where:
            sql += f" WHERE {where}"
        return sql

    def _fetch(self, conn: Connection, statement: BoundStatement) -> List[Row]:
        result = conn.execute(statement.to_text(), statement.parameters)
        return [dict(row) for row in result.mappings()]

    def close(self) -> None:
        self.engine.dispose()

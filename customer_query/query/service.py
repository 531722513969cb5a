"""
Query service: plan, execute once, materialize.

`DomainQueryService.execute` is the boundary of the query core. Every
`DomainQueryError` raised while planning or executing is logged and returned
as a failed `DomainQueryResult`; callers check ``result.success``.

Example:

    >>> service = DomainQueryService(SchemaRegistry.from_file("entities.json"), SQLiteDatabaseProvider("sqlite:///customer_data.db"))
    >>> result = service.execute(service.query("CustomerProfile").where({"customer_id": "C001"}).with_related("Interaction", {"$limit": 3}))
    >>> result.counts
    {'customerprofile': 1, 'interaction': 3}
"""

import asyncio
import logging
import threading
from typing import List, Optional

from customer_query.errors import DomainQueryError, QueryCancelledError, QueryExecutionError
from customer_query.query.builder import DomainQuery
from customer_query.query.materializer import materialize
from customer_query.query.planner import QueryPlan, QueryPlanner
from customer_query.query.results import DomainQueryResult
from customer_query.schema import SchemaRegistry
from customer_query.storage.interfaces import DatabaseProviderInterface

logger = logging.getLogger(__name__)


class DomainQueryService:
    """Executes domain queries against one database provider."""

    def __init__(self, registry: SchemaRegistry, provider: DatabaseProviderInterface):
        self.registry = registry
        self.provider = provider
        self.planner = QueryPlanner(registry, provider)

    def query(self, entity_name: Optional[str] = None) -> DomainQuery:
        """Start a new query, optionally rooted at `entity_name`."""
        query = DomainQuery()
        return query.from_entity(entity_name) if entity_name else query

    def execute(self, query: DomainQuery, cancel_event: Optional[threading.Event] = None) -> DomainQueryResult:
        """
        Run a query in a single round trip.

        Args:

            query: The query to run
            cancel_event: Optional signal; setting it aborts the running statement

        Returns:

            The result document. On failure ``success`` is False and ``error`` holds the message.
        """
        plan: Optional[QueryPlan] = None
        try:
            plan = self.planner.plan(query)
            rows = self.provider.execute(plan.statement, cancel_event)
            result = materialize(plan, rows)
            logger.debug("Query on %s returned %s", plan.primary.name, result.counts)
            return result
        except QueryExecutionError as e:
            if plan is not None:
                e.primary_entity = plan.primary.name
                e.joined_entities = plan.joined_entities
            logger.error("Error executing domain query: %s", e, exc_info=True)
            return DomainQueryResult.failed(str(e), _plan_warnings(plan))
        except QueryCancelledError as e:
            logger.info("Domain query on %s cancelled", query.primary_entity)
            return DomainQueryResult.failed(str(e), _plan_warnings(plan))
        except DomainQueryError as e:
            logger.warning("Domain query rejected: %s", e)
            return DomainQueryResult.failed(str(e), _plan_warnings(plan))

    async def execute_async(self, query: DomainQuery) -> DomainQueryResult:
        """
        Run a query in a worker thread.

        Cancelling the awaiting task interrupts the running statement.
        """
        cancel_event = threading.Event()
        try:
            return await asyncio.to_thread(self.execute, query, cancel_event)
        except asyncio.CancelledError:
            cancel_event.set()
            raise


def _plan_warnings(plan: Optional[QueryPlan]) -> List[str]:
    return [str(warning) for warning in plan.warnings] if plan is not None else []

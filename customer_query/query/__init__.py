"""
Query core and transport surfaces.

- **builder**: Immutable `DomainQuery` builder
- **planner**: Plans a query into one parameterized JOIN statement
- **materializer**: Rebuilds per-entity records from joined rows
- **service**: Plan, execute, materialize; failures become result documents
- **tools**: Named customer operations
- **server**: FastAPI app exposing the operations over REST and MCP
"""

from customer_query.query.builder import DomainQuery, RelatedEntityRequest
from customer_query.query.planner import QueryPlan, QueryPlanner
from customer_query.query.results import DomainQueryResult
from customer_query.query.service import DomainQueryService

__all__ = [
    "DomainQuery",
    "DomainQueryResult",
    "DomainQueryService",
    "QueryPlan",
    "QueryPlanner",
    "RelatedEntityRequest",
]

"""
Global fixtures for the test suite.

Fixtures:
- `registry`: The packaged customer schema (`entities.json`)
- `provider`: In-memory SQLite provider with the sample customer data seeded
  relative to `REFERENCE_TIME`
- `service`: `DomainQueryService` over `registry` and `provider`

Sample data (ids follow insertion order):

    C001 John Doe      subscriptions 1 Starter expired, 2 Professional cancelled, 3 Enterprise active
                       products 2 + 3 + 4, interactions 1-3 (email, phone, chat)
    C002 Jane Smith    subscriptions 4 Starter expired, 5 Professional active
    C003 Bob Wilson    subscription 6 Starter active, interactions 6-7 (both chat)
    C004 Alice Johnson subscriptions 7-9, interactions 8-9
    C005 Charlie Brown subscriptions 10-11, interactions 10-12

Run all tests with:
    pytest -v
"""

from datetime import datetime

import pytest

from customer_query.config import DEFAULT_SCHEMA_PATH
from customer_query.query.service import DomainQueryService
from customer_query.schema import SchemaRegistry
from customer_query.setup_database import create_tables, seed_sample_data
from customer_query.storage.backends.sqlite import SQLiteDatabaseProvider

REFERENCE_TIME = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture(scope="session")
def registry():
    """The packaged entity schema."""
    return SchemaRegistry.from_file(DEFAULT_SCHEMA_PATH)


@pytest.fixture
def provider():
    """In-memory SQLite provider seeded with the sample customers."""
    provider = SQLiteDatabaseProvider("sqlite://")
    create_tables(provider.engine)
    seed_sample_data(provider.engine, now=REFERENCE_TIME)
    yield provider
    provider.close()


@pytest.fixture
def service(registry, provider):
    """Query service over the seeded database."""
    return DomainQueryService(registry, provider)

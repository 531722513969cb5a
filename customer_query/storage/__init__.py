"""
Storage layer for the customer domain query planner.

Key Components:

- **interfaces**: The database capability consumed by the planner
- **backends**: Concrete implementations (SQLite, PostgreSQL, SQL Server)
- **models**: SQLModel tables backing the sample customer schema

Example:

    >>> from customer_query.storage.backends.sqlite import SQLiteDatabaseProvider
    >>> from customer_query.setup_database import setup_database
    >>>
    >>> provider = SQLiteDatabaseProvider("sqlite://")
    >>> setup_database(provider.engine)
"""

__all__ = [
    "interfaces",
    "backends",
    "models",
]

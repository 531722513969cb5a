"""
Factory for the process-wide schema registry, database provider and query service.
"""

import logging
from typing import Optional

from customer_query.config import Settings, get_settings
from customer_query.query.service import DomainQueryService
from customer_query.schema import SchemaRegistry
from customer_query.setup_database import setup_database
from customer_query.storage.backends import create_provider
from customer_query.storage.backends.base import SQLAlchemyDatabaseProvider

logger = logging.getLogger(__name__)

# Singletons
_registry: Optional[SchemaRegistry] = None
_provider: Optional[SQLAlchemyDatabaseProvider] = None
_service: Optional[DomainQueryService] = None


def get_registry(settings: Optional[Settings] = None) -> SchemaRegistry:
    """
    Returns the singleton schema registry, loading it on first use.
    """
    global _registry
    if _registry is None:
        settings = settings or get_settings()
        _registry = SchemaRegistry.from_file(settings.schema_path)
        logger.info("Loaded %d entities from %s", len(_registry), settings.schema_path)
    return _registry


def get_provider(settings: Optional[Settings] = None) -> SQLAlchemyDatabaseProvider:
    """
    Returns the singleton database provider for DATABASE_PROVIDER / DATABASE_URL.
    """
    global _provider
    if _provider is None:
        settings = settings or get_settings()
        if not settings.DATABASE_URL:
            raise ValueError("DATABASE_URL environment variable is not set.")
        _provider = create_provider(settings.DATABASE_PROVIDER, settings.DATABASE_URL)
        logger.info("Using %s database provider", _provider.provider_name)
    return _provider


def get_query_service() -> DomainQueryService:
    """
    FastAPI dependency (and MCP tool helper) that provides the shared query service.
    """
    global _service
    if _service is None:
        _service = DomainQueryService(get_registry(), get_provider())
    return _service


def init_storage(settings: Optional[Settings] = None) -> DomainQueryService:
    """
    Load the schema, connect, and create (and optionally seed) the tables.
    """
    settings = settings or get_settings()
    get_registry(settings)
    provider = get_provider(settings)
    setup_database(provider.engine, seed=settings.SEED_ON_STARTUP)
    return get_query_service()


def close_storage():
    """
    Disposes the engine and forgets the singletons.
    """
    global _registry, _provider, _service
    if _provider:
        _provider.close()
    _registry = None
    _provider = None
    _service = None

"""
Named customer operations.

Each operation roots a `DomainQuery` at ``CustomerProfile`` and joins the
related entities it needs. The ``*_query`` functions only build the query;
the ``get_*`` coroutines run it through a `DomainQueryService`. Both the MCP
tools and the REST endpoints call the coroutines.

Filters are MongoDB-style documents, e.g. ``{"email": "john.doe@example.com"}``
for the profile or ``{"status": "active", "$limit": 1}`` for a related entity.
"""

from typing import Any, Dict, Optional

from customer_query.query.builder import DomainQuery
from customer_query.query.results import DomainQueryResult
from customer_query.query.service import DomainQueryService

Filter = Optional[Dict[str, Any]]

CUSTOMER = "CustomerProfile"
SUBSCRIPTION = "Subscription"
PRODUCT = "Product"
INTERACTION = "Interaction"


def customer_360_query(profile: Filter, subscription: Filter = None, product: Filter = None, interaction: Filter = None) -> DomainQuery:
    return (
        DomainQuery()
        .from_entity(CUSTOMER)
        .where(profile)
        .with_related(SUBSCRIPTION, subscription)
        .with_related(PRODUCT, product, parent=SUBSCRIPTION)
        .with_related(INTERACTION, interaction)
    )


def customer_subscriptions_query(profile: Filter, subscription: Filter = None, product: Filter = None) -> DomainQuery:
    return DomainQuery().from_entity(CUSTOMER).where(profile).with_related(SUBSCRIPTION, subscription).with_related(PRODUCT, product, parent=SUBSCRIPTION)


def customer_products_query(profile: Filter, product: Filter = None) -> DomainQuery:
    # Subscription is only joined to reach Product
    return DomainQuery().from_entity(CUSTOMER).where(profile).with_related(SUBSCRIPTION).with_related(PRODUCT, product, parent=SUBSCRIPTION).select(PRODUCT)


def customer_interactions_query(profile: Filter, interaction: Filter = None) -> DomainQuery:
    return DomainQuery().from_entity(CUSTOMER).where(profile).with_related(INTERACTION, interaction)


def customer_profile_query(profile: Filter) -> DomainQuery:
    return DomainQuery().from_entity(CUSTOMER).where(profile).limit(1)


async def get_customer_360(service: DomainQueryService, profile: Filter, subscription: Filter = None, product: Filter = None, interaction: Filter = None) -> DomainQueryResult:
    """Customer profile with subscriptions, the products on each subscription, and interaction history."""
    return await service.execute_async(customer_360_query(profile, subscription, product, interaction))


async def get_customer_subscriptions(service: DomainQueryService, profile: Filter, subscription: Filter = None, product: Filter = None) -> DomainQueryResult:
    """Customer profile with subscriptions and their products."""
    return await service.execute_async(customer_subscriptions_query(profile, subscription, product))


async def get_customer_subscriptions_by_product(service: DomainQueryService, profile: Filter, product: Filter, subscription: Filter = None) -> DomainQueryResult:
    """
    Customer subscriptions alongside the products matching `product`.

    The product filter narrows only the product branch; subscriptions without
    a matching product are still returned with no products.
    """
    return await service.execute_async(customer_subscriptions_query(profile, subscription, product))


async def get_customer_products(service: DomainQueryService, profile: Filter, product: Filter = None) -> DomainQueryResult:
    """Products across all of a customer's subscriptions (only the product list is returned)."""
    return await service.execute_async(customer_products_query(profile, product))


async def get_customer_interactions(service: DomainQueryService, profile: Filter, interaction: Filter = None) -> DomainQueryResult:
    """Customer profile with interaction history."""
    return await service.execute_async(customer_interactions_query(profile, interaction))


async def get_customer_profile(service: DomainQueryService, profile: Filter) -> DomainQueryResult:
    """Customer profile without related data."""
    return await service.execute_async(customer_profile_query(profile))

"""
MCP (Model Context Protocol) API integration for AI agent access.

Exposes the named customer operations as tools. Filters use MongoDB-style
syntax, which language models already know.
"""

from typing import Any, Dict, Optional

from mcp.server import FastMCP

from customer_query.query import tools

from ..storage_factory import get_query_service

# Create FastMCP server instance; mounted under /mcp by the FastAPI app
mcp_server = FastMCP(
    name="Customer Query",
    instructions=(
        "Query customers with their subscriptions, products and interactions. "
        'Filters use MongoDB syntax, e.g. {"email": "user@example.com"} or {"status": "active", "$limit": 1}.'
    ),
    streamable_http_path="/",
)


@mcp_server.tool()
async def get_customer_360(
    profile: Dict[str, Any],
    subscription: Optional[Dict[str, Any]] = None,
    product: Optional[Dict[str, Any]] = None,
    interaction: Optional[Dict[str, Any]] = None,
) -> dict:
    """
    Get complete customer view including profile, subscriptions, products, and interaction history.

    Args:
        profile: Filter for CustomerProfile. Query by customer_id, email, phone, or name. Example: {"email": "user@example.com"}
        subscription: Filter for Subscription. Fields: plan_name, status, start_date, end_date. Use $limit for max results.
        product: Filter for Product. Fields: product_name, sku, quantity, price. Use $limit for max results.
        interaction: Filter for Interaction. Fields: summary, channel, timestamp. Use $limit for max results.

    Returns:
        Result document with success, data and counts
    """
    result = await tools.get_customer_360(get_query_service(), profile, subscription, product, interaction)
    return result.to_document()


@mcp_server.tool()
async def get_customer_subscriptions(profile: Dict[str, Any], subscription: Optional[Dict[str, Any]] = None, product: Optional[Dict[str, Any]] = None) -> dict:
    """
    Get customer subscription details with products.

    Args:
        profile: Filter for CustomerProfile. Example: {"customer_id": "C001"}
        subscription: Filter for Subscription. Fields: plan_name, status, start_date, end_date. Use $limit for max results.
        product: Filter for Product. Fields: product_name, sku, quantity, price. Use $limit for max results.
    """
    result = await tools.get_customer_subscriptions(get_query_service(), profile, subscription, product)
    return result.to_document()


@mcp_server.tool()
async def get_customer_subscriptions_by_product(profile: Dict[str, Any], product: Dict[str, Any], subscription: Optional[Dict[str, Any]] = None) -> dict:
    """
    Get customer subscriptions that contain specific products.

    Args:
        profile: Filter for CustomerProfile
        product: Filter for Product (required). Example: {"product_name": {"$like": "%CloudSuite%"}}
        subscription: Filter for Subscription
    """
    result = await tools.get_customer_subscriptions_by_product(get_query_service(), profile, product, subscription)
    return result.to_document()


@mcp_server.tool()
async def get_customer_products(profile: Dict[str, Any], product: Optional[Dict[str, Any]] = None) -> dict:
    """
    Get customer products across all subscriptions.

    Args:
        profile: Filter for CustomerProfile
        product: Filter for Product. Fields: product_name, sku, quantity, price. Use $limit for max results.
    """
    result = await tools.get_customer_products(get_query_service(), profile, product)
    return result.to_document()


@mcp_server.tool()
async def get_customer_interactions(profile: Dict[str, Any], interaction: Optional[Dict[str, Any]] = None) -> dict:
    """
    Get customer interaction history.

    Args:
        profile: Filter for CustomerProfile
        interaction: Filter for Interaction. Fields: summary, channel, timestamp. Use $limit for max results.
    """
    result = await tools.get_customer_interactions(get_query_service(), profile, interaction)
    return result.to_document()


@mcp_server.tool()
async def get_customer_profile(profile: Dict[str, Any]) -> dict:
    """
    Get customer profile without related data.

    Args:
        profile: Filter for CustomerProfile. Example: {"phone": "+1-555-0101"}
    """
    result = await tools.get_customer_profile(get_query_service(), profile)
    return result.to_document()

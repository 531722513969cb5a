"""
REST API router for customer queries.

Every endpoint answers 200 with the result document when the query succeeds
and 400 with the same document shape when it fails.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from customer_query.query import tools
from customer_query.query.results import DomainQueryResult
from customer_query.query.service import DomainQueryService

from ..storage_factory import get_query_service

router = APIRouter(prefix="/api", tags=["Customer"])

PROFILE_DESCRIPTION = 'MongoDB-style filter for CustomerProfile. Query by customer_id, email, phone, or name. Example: {"email": "user@example.com"}'
SUBSCRIPTION_DESCRIPTION = "MongoDB-style filter for Subscription. Fields: plan_name, status, start_date, end_date. Use $limit for max results."
PRODUCT_DESCRIPTION = "MongoDB-style filter for Product. Fields: product_name, sku, quantity, price. Use $limit for max results."
INTERACTION_DESCRIPTION = "MongoDB-style filter for Interaction. Fields: summary, channel, timestamp. Use $limit for max results."


class CustomerProfileRequest(BaseModel):
    """
    Base request with the customer profile filter.

    Attributes:

        profile: Filter selecting the customer
    """

    profile: Dict[str, Any] = Field(default_factory=dict, description=PROFILE_DESCRIPTION)


class Customer360Request(CustomerProfileRequest):
    subscription: Optional[Dict[str, Any]] = Field(None, description=SUBSCRIPTION_DESCRIPTION)
    product: Optional[Dict[str, Any]] = Field(None, description=PRODUCT_DESCRIPTION)
    interaction: Optional[Dict[str, Any]] = Field(None, description=INTERACTION_DESCRIPTION)


class CustomerSubscriptionsRequest(CustomerProfileRequest):
    subscription: Optional[Dict[str, Any]] = Field(None, description=SUBSCRIPTION_DESCRIPTION)
    product: Optional[Dict[str, Any]] = Field(None, description=PRODUCT_DESCRIPTION)


class CustomerSubscriptionsByProductRequest(CustomerProfileRequest):
    product: Dict[str, Any] = Field(..., description=PRODUCT_DESCRIPTION)
    subscription: Optional[Dict[str, Any]] = Field(None, description=SUBSCRIPTION_DESCRIPTION)


class CustomerProductsRequest(CustomerProfileRequest):
    product: Optional[Dict[str, Any]] = Field(None, description=PRODUCT_DESCRIPTION)


class CustomerInteractionsRequest(CustomerProfileRequest):
    interaction: Optional[Dict[str, Any]] = Field(None, description=INTERACTION_DESCRIPTION)


def _respond(result: DomainQueryResult) -> JSONResponse:
    return JSONResponse(content=result.to_document(), status_code=200 if result.success else 400)


@router.post("/customer/360", summary="Customer 360 view")
async def customer_360(request: Customer360Request, service: DomainQueryService = Depends(get_query_service)):
    """
    Profile, subscriptions with their products, and interaction history.
    """
    return _respond(await tools.get_customer_360(service, request.profile, request.subscription, request.product, request.interaction))


@router.post("/customer/subscriptions", summary="Customer subscriptions with products")
async def customer_subscriptions(request: CustomerSubscriptionsRequest, service: DomainQueryService = Depends(get_query_service)):
    return _respond(await tools.get_customer_subscriptions(service, request.profile, request.subscription, request.product))


@router.post("/customer/subscriptions-by-product", summary="Customer subscriptions filtered by product")
async def customer_subscriptions_by_product(request: CustomerSubscriptionsByProductRequest, service: DomainQueryService = Depends(get_query_service)):
    """
    Subscriptions with only the products matching the product filter.
    """
    return _respond(await tools.get_customer_subscriptions_by_product(service, request.profile, request.product, request.subscription))


@router.post("/customer/products", summary="Customer products")
async def customer_products(request: CustomerProductsRequest, service: DomainQueryService = Depends(get_query_service)):
    return _respond(await tools.get_customer_products(service, request.profile, request.product))


@router.post("/customer/interactions", summary="Customer interaction history")
async def customer_interactions(request: CustomerInteractionsRequest, service: DomainQueryService = Depends(get_query_service)):
    return _respond(await tools.get_customer_interactions(service, request.profile, request.interaction))


@router.post("/customer/profile", summary="Customer profile only")
async def customer_profile(request: CustomerProfileRequest, service: DomainQueryService = Depends(get_query_service)):
    return _respond(await tools.get_customer_profile(service, request.profile))

"""
SQLModel tables for customers, their subscriptions, the products on each
subscription, and support interactions.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CustomerProfile(SQLModel, table=True):
    __tablename__ = "CustomerProfile"

    customer_id: str = Field(primary_key=True, max_length=50)
    name: str = Field(max_length=200)
    email: str = Field(max_length=200, index=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    created_at: datetime = Field(default_factory=utc_now)


class Subscription(SQLModel, table=True):
    __tablename__ = "Subscription"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: str = Field(foreign_key="CustomerProfile.customer_id", index=True, max_length=50)
    plan_name: str = Field(max_length=100)
    status: str = Field(max_length=50)  # active, cancelled, expired
    start_date: datetime
    end_date: Optional[datetime] = None


class Product(SQLModel, table=True):
    __tablename__ = "Product"

    id: Optional[int] = Field(default=None, primary_key=True)
    subscription_id: int = Field(foreign_key="Subscription.id", index=True)
    product_name: str = Field(max_length=200)
    sku: str = Field(max_length=50)
    quantity: int = 1
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)


class Interaction(SQLModel, table=True):
    __tablename__ = "Interaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: str = Field(foreign_key="CustomerProfile.customer_id", index=True, max_length=50)
    summary: str = Field(max_length=1000)
    channel: str = Field(max_length=50)  # email, phone, chat
    timestamp: datetime

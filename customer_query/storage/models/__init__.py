"""
SQLModel persistence models for the sample customer database.

Table names match the ``tableName`` of each entity in ``entities.json``.

Example:

    >>> from sqlmodel import SQLModel, create_engine
    >>> from customer_query.storage.models import CustomerProfile
    >>>
    >>> engine = create_engine("sqlite://")
    >>> SQLModel.metadata.create_all(engine)
"""

from customer_query.storage.models.customer import CustomerProfile, Interaction, Product, Subscription

__all__ = [
    "CustomerProfile",
    "Interaction",
    "Product",
    "Subscription",
]

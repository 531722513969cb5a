"""
Database setup script for the customer domain.

This script:
1. Creates all tables from the SQLModel definitions
2. Seeds sample customers, subscriptions, products and interactions when the
   customer table is empty

Usage:
    python -m customer_query.setup_database --database-url sqlite:///customer_data.db
"""

import argparse
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine, select

from customer_query.config import configure_logging
from customer_query.storage.models import CustomerProfile, Interaction, Product, Subscription
from customer_query.storage.models.customer import utc_now

logger = logging.getLogger(__name__)

# (customer_id, name, email, phone, days since created)
SAMPLE_CUSTOMERS = [
    ("C001", "John Doe", "john.doe@example.com", "+1-555-0101", 30),
    ("C002", "Jane Smith", "jane.smith@example.com", "+1-555-0102", 25),
    ("C003", "Bob Wilson", "bob.wilson@example.com", "+1-555-0103", 20),
    ("C004", "Alice Johnson", "alice.johnson@example.com", "+1-555-0104", 15),
    ("C005", "Charlie Brown", "charlie.brown@example.com", "+1-555-0105", 10),
]

# (customer_id, summary, channel, days ago)
SAMPLE_INTERACTIONS = [
    ("C001", "Customer inquired about product pricing for enterprise plan", "email", 5),
    ("C001", "Follow-up call scheduled for next week regarding demo", "phone", 3),
    ("C001", "Customer requested technical documentation", "chat", 1),
    ("C002", "Discussed integration requirements with cloud services", "email", 4),
    ("C002", "Sent proposal for custom implementation", "email", 2),
    ("C003", "Support ticket opened for login issues", "chat", 6),
    ("C003", "Issue resolved, password reset completed", "chat", 5),
    ("C004", "Requested information about API rate limits", "email", 3),
    ("C004", "Upgraded to premium tier for higher limits", "phone", 1),
    ("C005", "New customer onboarding call completed", "phone", 8),
    ("C005", "Training session scheduled for team", "email", 6),
    ("C005", "First project deployment successful", "chat", 2),
]

ProductRow = Tuple[str, str, int, str]

# (customer_id, plan_name, status, start offset days, end offset days, products)
SAMPLE_SUBSCRIPTIONS: List[Tuple[str, str, str, int, int, List[ProductRow]]] = [
    ("C001", "Starter", "expired", -365, -30, [("CloudSuite Basic", "CS-BAS", 5, "6.99"), ("Cloud Storage 100GB", "STR-100", 1, "1.99")]),
    (
        "C001",
        "Professional",
        "cancelled",
        -180,
        -60,
        [("CloudSuite Pro", "CS-PRO", 10, "23.00"), ("Identity Manager P1", "IDM-P1", 10, "6.00"), ("Voice Connect", "VC-STD", 5, "8.00")],
    ),
    (
        "C001",
        "Enterprise",
        "active",
        -30,
        335,
        [
            ("CloudSuite Enterprise", "CS-ENT", 25, "38.00"),
            ("Identity Manager P2", "IDM-P2", 25, "9.00"),
            ("Security Shield", "SEC-ENT", 25, "5.20"),
            ("Analytics Pro", "ANL-PRO", 10, "10.00"),
        ],
    ),
    ("C002", "Starter", "expired", -400, -35, [("CloudSuite Basic", "CS-BAS", 3, "6.99")]),
    (
        "C002",
        "Professional",
        "active",
        -25,
        340,
        [("CloudSuite Pro", "CS-PRO", 15, "23.00"), ("DevOps Platform", "DEV-BAS", 10, "6.00"), ("Code Repository Enterprise", "CR-ENT", 10, "21.00")],
    ),
    ("C003", "Starter", "active", -20, 345, [("CloudSuite Basic", "CS-BAS", 2, "6.99"), ("Cloud Storage 100GB", "STR-100", 2, "1.99")]),
    ("C004", "Starter", "expired", -300, -200, [("CloudSuite Basic", "CS-BAS", 1, "6.99")]),
    ("C004", "Professional", "expired", -200, -5, [("CloudSuite Pro", "CS-PRO", 5, "23.00"), ("CRM Platform", "CRM-STD", 3, "95.00")]),
    (
        "C004",
        "Premium",
        "active",
        -1,
        364,
        [("CloudSuite Enterprise", "CS-ENT", 10, "38.00"), ("CRM Platform", "CRM-STD", 5, "95.00"), ("Automation Platform", "AUTO-PRO", 5, "40.00")],
    ),
    ("C005", "Professional", "cancelled", -100, -50, [("CloudSuite Pro", "CS-PRO", 8, "23.00")]),
    (
        "C005",
        "Enterprise",
        "active",
        -8,
        357,
        [("CloudSuite Enterprise", "CS-ENT", 20, "38.00"), ("Identity Manager P2", "IDM-P2", 20, "9.00"), ("AI Assistant", "AI-PRO", 10, "30.00")],
    ),
]


def create_tables(engine: Engine) -> None:
    """Create every table registered with SQLModel.metadata."""
    logger.info("Creating tables...")
    SQLModel.metadata.create_all(engine)
    logger.info("Tables created")


def seed_sample_data(engine: Engine, now: Optional[datetime] = None) -> bool:
    """
    Insert the sample customer data set.

    Args:

        engine: Engine for the target database
        now: Reference time the sample dates are relative to (defaults to the current UTC time)

    Returns:

        True if data was inserted, False if customers already existed
    """
    now = now or utc_now()
    with Session(engine) as session:
        existing = session.exec(select(func.count()).select_from(CustomerProfile)).one()
        if existing:
            logger.info("Database already contains %d customers, skipping seed", existing)
            return False

        for customer_id, name, email, phone, days in SAMPLE_CUSTOMERS:
            session.add(CustomerProfile(customer_id=customer_id, name=name, email=email, phone=phone, created_at=now - timedelta(days=days)))
        # Children reference the customers by foreign key
        session.flush()

        for customer_id, summary, channel, days in SAMPLE_INTERACTIONS:
            session.add(Interaction(customer_id=customer_id, summary=summary, channel=channel, timestamp=now - timedelta(days=days)))

        for customer_id, plan_name, status, start, end, products in SAMPLE_SUBSCRIPTIONS:
            subscription = Subscription(
                customer_id=customer_id, plan_name=plan_name, status=status, start_date=now + timedelta(days=start), end_date=now + timedelta(days=end)
            )
            session.add(subscription)
            session.flush()
            for product_name, sku, quantity, price in products:
                session.add(Product(subscription_id=subscription.id, product_name=product_name, sku=sku, quantity=quantity, price=Decimal(price)))

        session.commit()

    logger.info(
        "Seeded %d customers, %d subscriptions, %d interactions",
        len(SAMPLE_CUSTOMERS),
        len(SAMPLE_SUBSCRIPTIONS),
        len(SAMPLE_INTERACTIONS),
    )
    return True


def setup_database(engine: Engine, seed: bool = True) -> None:
    """Complete database setup."""
    logger.info("Setting up database: %s", engine.url.render_as_string(hide_password=True))
    create_tables(engine)
    if seed:
        seed_sample_data(engine)
    logger.info("Database setup complete")


def main():
    parser = argparse.ArgumentParser(description="Set up the customer database")
    parser.add_argument("--database-url", required=True, help="SQLAlchemy database URL (e.g., sqlite:///customer_data.db)")
    parser.add_argument("--no-seed", action="store_true", help="Create tables without inserting the sample data")

    args = parser.parse_args()
    configure_logging("INFO")
    setup_database(create_engine(args.database_url, echo=False), seed=not args.no_seed)


if __name__ == "__main__":
    main()

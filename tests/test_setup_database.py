"""
Tests for setup_database.py

These tests create the customer tables in an in-memory SQLite database and
check the sample data set, including that seeding twice is a no-op.

Run with: pytest tests/test_setup_database.py -v
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, func, inspect
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, select

from customer_query.setup_database import SAMPLE_SUBSCRIPTIONS, create_tables, main, seed_sample_data, setup_database
from customer_query.storage.models import CustomerProfile, Interaction, Product, Subscription
from customer_query.storage.models.customer import utc_now
from tests.conftest import REFERENCE_TIME


@pytest.fixture
def engine():
    """Empty in-memory SQLite engine."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    yield engine
    engine.dispose()


def count(engine, model):
    with Session(engine) as session:
        return session.exec(select(func.count()).select_from(model)).one()


def test_create_tables(engine):
    """Test that create_tables creates every customer table with its columns."""
    create_tables(engine)

    inspector = inspect(engine)
    assert set(inspector.get_table_names()) >= {"CustomerProfile", "Subscription", "Product", "Interaction"}

    product_columns = {col["name"] for col in inspector.get_columns("Product")}
    assert product_columns == {"id", "subscription_id", "product_name", "sku", "quantity", "price"}


def test_seed_sample_data(engine):
    """Test the sample data set is inserted."""
    create_tables(engine)

    assert seed_sample_data(engine, now=REFERENCE_TIME) is True
    assert count(engine, CustomerProfile) == 5
    assert count(engine, Subscription) == 11
    assert count(engine, Interaction) == 12
    assert count(engine, Product) == sum(len(products) for *_, products in SAMPLE_SUBSCRIPTIONS)


def test_seed_is_idempotent(engine):
    """Test seeding a database that already has customers does nothing."""
    create_tables(engine)
    seed_sample_data(engine, now=REFERENCE_TIME)

    assert seed_sample_data(engine, now=REFERENCE_TIME) is False
    assert count(engine, CustomerProfile) == 5


def test_products_reference_subscriptions(engine):
    """Test every product belongs to a subscription of the same sample customer."""
    create_tables(engine)
    seed_sample_data(engine, now=REFERENCE_TIME)

    with Session(engine) as session:
        subscription_ids = {s.id for s in session.exec(select(Subscription)).all()}
        products = session.exec(select(Product)).all()

    assert products
    assert all(p.subscription_id in subscription_ids for p in products)


def test_sample_dates_relative_to_reference(engine):
    """Test sample timestamps are computed from the given reference time."""
    create_tables(engine)
    seed_sample_data(engine, now=REFERENCE_TIME)

    with Session(engine) as session:
        latest = session.exec(select(func.max(Interaction.timestamp))).one()

    assert latest == REFERENCE_TIME - timedelta(days=1)


def test_setup_database_without_seed(engine):
    """Test setup_database(seed=False) only creates tables."""
    setup_database(engine, seed=False)

    assert "CustomerProfile" in inspect(engine).get_table_names()
    assert count(engine, CustomerProfile) == 0


def test_main(tmp_path):
    """Test the command line entry point creates and seeds a database file."""
    url = f"sqlite:///{tmp_path / 'customers.db'}"
    with patch("sys.argv", ["setup_database", "--database-url", url]):
        main()

    engine = create_engine(url)
    try:
        assert count(engine, CustomerProfile) == 5
    finally:
        engine.dispose()


def test_created_at_default_is_naive_utc(engine):
    """Test a customer inserted without created_at gets the current time as naive UTC."""
    create_tables(engine)
    before = utc_now()
    with Session(engine) as session:
        session.add(CustomerProfile(customer_id="C900", name="New Customer", email="new@example.com"))
        session.commit()
        stored = session.get(CustomerProfile, "C900").created_at

    assert stored.tzinfo is None
    assert before <= stored <= utc_now()

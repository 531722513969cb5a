"""
Tests for the storage factory singletons and settings.

Run with: pytest tests/test_storage_factory.py -v
"""

import pytest

from customer_query.config import DEFAULT_SCHEMA_PATH, Settings
from customer_query.query import storage_factory
from customer_query.storage.backends.sqlite import SQLiteDatabaseProvider


@pytest.fixture
def settings(tmp_path):
    """Settings for a SQLite file in a temporary directory."""
    return Settings(DATABASE_PROVIDER="sqlite", DATABASE_URL=f"sqlite:///{tmp_path / 'customers.db'}", SEED_ON_STARTUP=True)


@pytest.fixture(autouse=True)
def reset_singletons():
    storage_factory.close_storage()
    yield
    storage_factory.close_storage()


class TestSettings:
    """Test configuration defaults."""

    def test_defaults(self, monkeypatch):
        """Test the default provider and schema path."""
        monkeypatch.delenv("DATABASE_PROVIDER", raising=False)
        monkeypatch.delenv("ENTITY_SCHEMA_PATH", raising=False)
        settings = Settings(_env_file=None)

        assert settings.DATABASE_PROVIDER == "sqlite"
        assert settings.schema_path == DEFAULT_SCHEMA_PATH

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test values are read from the environment."""
        monkeypatch.setenv("DATABASE_PROVIDER", "postgres")
        monkeypatch.setenv("ENTITY_SCHEMA_PATH", str(tmp_path / "entities.json"))
        settings = Settings(_env_file=None)

        assert settings.DATABASE_PROVIDER == "postgres"
        assert settings.schema_path == tmp_path / "entities.json"


class TestStorageFactory:
    """Test the process-wide registry, provider and service."""

    def test_init_storage(self, settings):
        """Test init_storage creates, seeds and serves the database."""
        service = storage_factory.init_storage(settings)

        assert isinstance(service.provider, SQLiteDatabaseProvider)
        result = service.execute(service.query("CustomerProfile").where({"customer_id": "C001"}))
        assert result.data["customerprofile"]["name"] == "John Doe"

    def test_singletons_reused(self, settings):
        """Test repeated calls return the same instances."""
        storage_factory.init_storage(settings)

        assert storage_factory.get_query_service() is storage_factory.get_query_service()
        assert storage_factory.get_registry() is storage_factory.get_registry()

    def test_without_seed(self, settings):
        """Test the tables are left empty when seeding is disabled."""
        settings.SEED_ON_STARTUP = False
        service = storage_factory.init_storage(settings)

        result = service.execute(service.query("CustomerProfile").where({"customer_id": "C001"}))
        assert result.success
        assert result.data["customerprofile"] is None

    def test_close_storage_forgets_singletons(self, settings):
        """Test close_storage drops every singleton."""
        first = storage_factory.init_storage(settings)
        storage_factory.close_storage()

        assert storage_factory.init_storage(settings) is not first

    def test_unknown_provider(self, tmp_path):
        """Test an unknown DATABASE_PROVIDER fails at startup."""
        settings = Settings(DATABASE_PROVIDER="oracle", DATABASE_URL=f"sqlite:///{tmp_path / 'x.db'}")
        with pytest.raises(ValueError, match="Unknown database provider"):
            storage_factory.get_provider(settings)

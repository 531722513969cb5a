"""
Tests for storage layer.

This package contains tests for the database providers.

Test Structure:

- **backends/**: Tests for backend implementations (SQLite, PostgreSQL, SQL Server)

Run all storage tests:
    pytest tests/storage/ -v
"""

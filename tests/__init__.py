"""
Tests for the customer query package.

This directory contains unit tests for:
- Entity schema loading and validation (schema.py)
- Filter parsing and value coercion (filters.py, coercion.py)
- Query building, planning and materialization (query/)
- Database providers (storage/backends/)
- The REST and MCP surfaces
"""

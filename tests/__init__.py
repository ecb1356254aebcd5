"""
Tests Package - Unit and Integration Tests

Test structure:
- tests/unit/ - Fast, isolated tests of the enrichment core and utilities
- tests/integration/ - SQLite repository, UserQueryService and API tests
- tests/conftest.py - Shared pytest fixtures and fake lookup clients
"""
